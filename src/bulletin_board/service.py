"""
The remote bulletin service contract.

The board never talks to storage directly: querying, authorization and
persistence all happen behind this interface.
"""

from abc import ABC, abstractmethod

from .models import Comment, Filters, Option, Record, RecordType, RoleContext


class BulletinServiceError(Exception):
    """A bulletin service call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class BulletinService(ABC):
    """Operations the board needs from the remote record service."""

    @abstractmethod
    async def get_context(self) -> RoleContext:
        """Role of the current user plus admin and submitter rosters."""

    @abstractmethod
    async def list_active_categories(self) -> list[Option]:
        pass

    @abstractmethod
    async def list_active_category_names(self) -> list[str]:
        pass

    @abstractmethod
    async def list_active_status_options(self, record_type: RecordType) -> list[Option]:
        """Centrally administered status vocabulary for one record type."""

    @abstractmethod
    async def list_suggestions(self, filters: Filters) -> list[Record]:
        pass

    @abstractmethod
    async def list_support_tickets(self, filters: Filters) -> list[Record]:
        pass

    @abstractmethod
    async def get_request(self, record_id: str) -> Record:
        pass

    @abstractmethod
    async def create_request(
        self,
        record_type: RecordType,
        title: str,
        body_html: str,
        category_ids: list[str],
    ) -> Record:
        pass

    @abstractmethod
    async def update_status(self, record_id: str, status: str) -> Record:
        pass

    @abstractmethod
    async def update_description(self, record_id: str, body_html: str) -> Record:
        pass

    @abstractmethod
    async def update_owner(self, record_id: str, owner_id: str | None) -> Record:
        pass

    @abstractmethod
    async def list_comments(self, request_id: str) -> list[Comment]:
        pass

    @abstractmethod
    async def create_comment(self, request_id: str, body: str) -> Comment:
        pass

    @abstractmethod
    async def get_support_owner_options(self) -> list[Option]:
        """Users a Support Request can be assigned to."""
