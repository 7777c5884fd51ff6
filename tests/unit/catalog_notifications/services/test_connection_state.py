"""Tests for the connection state machine."""

import unittest

from catalog_notifications.enums import ConnectionStatus
from catalog_notifications.services import (
    ConnectionEvent,
    ConnectionState,
    Effect,
    transition,
)

CONNECTING = ConnectionState(status=ConnectionStatus.CONNECTING)


class TestConnectionStateTransitions(unittest.TestCase):
    """Test cases for ``transition``."""

    def test_connect_requested_from_disconnected(self):
        """Test a connect request starts connecting."""
        state, effects = transition(ConnectionState(), ConnectionEvent.CONNECT_REQUESTED)

        self.assertEqual(state.status, ConnectionStatus.CONNECTING)
        self.assertEqual(effects, ())

    def test_connect_requested_while_connected_is_ignored(self):
        """Test a second connect request leaves a live connection alone."""
        connected = ConnectionState(status=ConnectionStatus.CONNECTED, subscribed=True)

        state, effects = transition(connected, ConnectionEvent.CONNECT_REQUESTED)

        self.assertEqual(state, connected)
        self.assertEqual(effects, (Effect.IGNORED,))

    def test_identity_failure_moves_to_error_without_retry(self):
        """Test a failed identity lookup ends in error with no retry."""
        state, effects = transition(CONNECTING, ConnectionEvent.IDENTITY_FAILED)

        self.assertEqual(state.status, ConnectionStatus.ERROR)
        self.assertNotIn(Effect.SCHEDULE_RETRY, effects)

    def test_first_connection_subscribes_and_fetches_snapshot(self):
        """Test the first connection of a session refreshes the snapshot."""
        state, effects = transition(CONNECTING, ConnectionEvent.CONNECTED)

        self.assertEqual(state.status, ConnectionStatus.CONNECTED)
        self.assertTrue(state.subscribed)
        self.assertTrue(state.has_connected)
        self.assertEqual(effects, (Effect.SUBSCRIBE, Effect.FETCH_SNAPSHOT))

    def test_later_connection_does_not_fetch_snapshot(self):
        """Test reconnections only resubscribe."""
        reconnecting = ConnectionState(
            status=ConnectionStatus.CONNECTING, reconnect_attempts=3, has_connected=True
        )

        state, effects = transition(reconnecting, ConnectionEvent.CONNECTED)

        self.assertEqual(effects, (Effect.SUBSCRIBE,))
        self.assertEqual(state.reconnect_attempts, 0)

    def test_connection_with_existing_subscription(self):
        """Test an existing handle is reused instead of subscribing twice."""
        subscribed = ConnectionState(
            status=ConnectionStatus.CONNECTING, subscribed=True, has_connected=True
        )

        _, effects = transition(subscribed, ConnectionEvent.CONNECTED)

        self.assertEqual(effects, (Effect.ALREADY_SUBSCRIBED,))

    def test_connected_event_outside_connecting_is_ignored(self):
        """Test a late CONNECTED ack after teardown changes nothing."""
        state, effects = transition(ConnectionState(), ConnectionEvent.CONNECTED)

        self.assertEqual(state.status, ConnectionStatus.DISCONNECTED)
        self.assertEqual(effects, (Effect.IGNORED,))

    def test_transport_closed_schedules_retry(self):
        """Test a dropped connection counts an attempt and retries."""
        connected = ConnectionState(
            status=ConnectionStatus.CONNECTED, subscribed=True, has_connected=True
        )

        state, effects = transition(connected, ConnectionEvent.TRANSPORT_CLOSED)

        self.assertEqual(state.status, ConnectionStatus.DISCONNECTED)
        self.assertEqual(state.reconnect_attempts, 1)
        self.assertFalse(state.subscribed)
        self.assertTrue(state.has_connected)
        self.assertEqual(effects, (Effect.SCHEDULE_RETRY,))

    def test_transport_closed_when_idle_is_ignored(self):
        """Test a close notification for an idle connection is ignored."""
        idle = ConnectionState(status=ConnectionStatus.ERROR, reconnect_attempts=2)

        state, effects = transition(idle, ConnectionEvent.TRANSPORT_CLOSED)

        self.assertEqual(state, idle)
        self.assertEqual(effects, (Effect.IGNORED,))

    def test_transport_error_increments_attempts(self):
        """Test each transport failure adds one attempt."""
        state = CONNECTING
        for expected in (1, 2, 3):
            state, effects = transition(state, ConnectionEvent.TRANSPORT_ERROR)
            self.assertEqual(state.status, ConnectionStatus.ERROR)
            self.assertEqual(state.reconnect_attempts, expected)
            self.assertEqual(effects, (Effect.SCHEDULE_RETRY,))
            state, _ = transition(state, ConnectionEvent.CONNECT_REQUESTED)

    def test_protocol_error_closes_transport_then_retries(self):
        """Test a STOMP ERROR frame closes the socket before retrying."""
        connected = ConnectionState(status=ConnectionStatus.CONNECTED, subscribed=True)

        state, effects = transition(connected, ConnectionEvent.PROTOCOL_ERROR)

        self.assertEqual(state.status, ConnectionStatus.ERROR)
        self.assertFalse(state.subscribed)
        self.assertEqual(effects, (Effect.CLOSE_TRANSPORT, Effect.SCHEDULE_RETRY))

    def test_manual_reconnect_resets_attempts(self):
        """Test a manual reconnect starts over with zero attempts."""
        failing = ConnectionState(status=ConnectionStatus.ERROR, reconnect_attempts=5)

        state, effects = transition(failing, ConnectionEvent.MANUAL_RECONNECT)

        self.assertEqual(state.status, ConnectionStatus.CONNECTING)
        self.assertEqual(state.reconnect_attempts, 0)
        self.assertEqual(effects, (Effect.UNSUBSCRIBE, Effect.CLOSE_TRANSPORT))

    def test_manual_reconnect_while_connecting_is_ignored(self):
        """Test a reconnect cannot start while an attempt is in flight."""
        state, effects = transition(CONNECTING, ConnectionEvent.MANUAL_RECONNECT)

        self.assertEqual(state, CONNECTING)
        self.assertEqual(effects, (Effect.IGNORED,))

    def test_shutdown_from_any_status(self):
        """Test shutdown always ends disconnected and unsubscribed."""
        for status in ConnectionStatus:
            with self.subTest(status=status):
                state, effects = transition(
                    ConnectionState(status=status, subscribed=True),
                    ConnectionEvent.SHUTDOWN,
                )
                self.assertEqual(state.status, ConnectionStatus.DISCONNECTED)
                self.assertFalse(state.subscribed)
                self.assertEqual(effects, (Effect.UNSUBSCRIBE, Effect.CLOSE_TRANSPORT))

    def test_unknown_event_raises(self):
        """Test an unknown event is rejected."""
        with self.assertRaises(ValueError):
            transition(ConnectionState(), "bogus")


if __name__ == "__main__":
    unittest.main()
