"""Dependency injection for repository layer."""

from fastapi import Depends
from sqlalchemy.orm import Session

from ..db.database import get_db
from .interfaces import RepositoryContainer
from .sqlalchemy_impl import (
    SQLAlchemyTokenRepository,
    SQLAlchemyBatchMemberRepository,
)


def get_repository_container(
    db: Session = Depends(get_db),
) -> RepositoryContainer:
    """
    Create and configure a repository container with SQLAlchemy implementations.

    This is the main dependency injection point for repositories.
    """
    return RepositoryContainer(
        token_repo=SQLAlchemyTokenRepository(db),
        member_repo=SQLAlchemyBatchMemberRepository(db),
    )
