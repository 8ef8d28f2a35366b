from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Generator

from sqlalchemy.orm import Session


class StorageAdapter(ABC):
    """Abstract base class for storage adapters."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the storage backend."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the connection."""
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the backend is reachable."""
        pass

    @abstractmethod
    def get_session(self) -> Generator[Session, None, None]:
        """Provide a contextual session."""
        pass


@contextmanager
def transaction(session: Session) -> Generator[Session, None, None]:
    """
    Run a block as one transaction on an existing session.

    Commits on success; rolls back and re-raises on any error so that
    check-then-act sequences either fully apply or leave no trace.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
