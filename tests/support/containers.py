"""Reusable Testcontainers configuration for integration tests.

Provides a MongoDB container shared by the integration test session.
"""

from typing import Optional

from testcontainers.mongodb import MongoDbContainer as BaseMongoDbContainer


class MongoDBContainer(BaseMongoDbContainer):
    """Standalone MongoDB container for repository tests."""

    def __init__(
        self,
        image: str = "mongo:7.0",
        **kwargs: object,
    ) -> None:
        """Initialize MongoDB container.

        Args:
            image: MongoDB image tag
            **kwargs: Additional container arguments
        """
        super().__init__(image=image, **kwargs)


# Singleton container instance for the test session
_mongodb_container: Optional[MongoDBContainer] = None


def get_mongodb_container() -> MongoDBContainer:
    """Get or create MongoDB container instance.

    Returns:
        MongoDBContainer instance
    """
    global _mongodb_container
    if _mongodb_container is None:
        _mongodb_container = MongoDBContainer()
        _mongodb_container.start()
    return _mongodb_container


def stop_mongodb_container() -> None:
    """Stop the session MongoDB container if it was started."""
    global _mongodb_container
    if _mongodb_container is not None:
        _mongodb_container.stop()
        _mongodb_container = None
