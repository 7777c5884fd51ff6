"""Generation token identifying one lifetime of a notification session."""

import itertools
import uuid

_generations = itertools.count(1)


class SessionToken:
    """Token handed to every component bound to one session lifetime.

    Work started under a token checks ``revoked`` after each suspension point
    and discards its result once the session that issued it was torn down.
    """

    def __init__(self) -> None:
        self.generation = next(_generations)
        self.session_id = uuid.uuid4().hex[:12]
        self._revoked = False

    @property
    def revoked(self) -> bool:
        """Whether the issuing session has been torn down."""
        return self._revoked

    def revoke(self) -> None:
        """Mark the session lifetime as over."""
        self._revoked = True

    def __repr__(self) -> str:
        return (
            f"SessionToken(generation={self.generation}, "
            f"session_id={self.session_id}, revoked={self._revoked})"
        )
