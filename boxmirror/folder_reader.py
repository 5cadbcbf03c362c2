"""Reader for remote folder listings with automatic pagination."""

import logging
from collections.abc import Generator

from .api import BoxClient
from .models import FolderInfo, FolderPage, RemoteEntry
from .utils import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


class FolderReader:
    """Lists the children of remote folders, one page at a time.

    Pages are requested sequentially with a fixed page size; a page holding
    fewer entries than the page size is the last one. Errors are never
    swallowed here: a failing page request aborts the whole listing.
    """

    def __init__(self, client: BoxClient, page_size: int = DEFAULT_PAGE_SIZE):
        """Initialize the folder reader.

        Args:
            client: Box API client
            page_size: Number of entries requested per page (default: 1000)
        """
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.client = client
        self.page_size = page_size

    def iter_pages(self, folder_id: str) -> Generator[FolderPage, None, None]:
        """Yield the pages of a folder listing in fetch order.

        Args:
            folder_id: Folder ID to list

        Yields:
            One FolderPage per request
        """
        offset = 0
        while True:
            result = self.client.get_folder_items(
                folder_id, offset=offset, limit=self.page_size
            )
            page = FolderPage.from_api_response(result)
            logger.debug(
                f"Folder {folder_id}: {len(page.entries)} entries at offset {offset}"
            )
            yield page

            if len(page.entries) < self.page_size:
                break
            offset += self.page_size

    def list_children(self, folder_id: str) -> list[RemoteEntry]:
        """Get all children of a folder with automatic pagination.

        Args:
            folder_id: Folder ID to list

        Returns:
            All entries, concatenated in page arrival order
        """
        children: list[RemoteEntry] = []
        for page in self.iter_pages(folder_id):
            children.extend(page.entries)
        return children

    def get_folder_info(
        self, folder_id: str, include_children: bool = True
    ) -> FolderInfo:
        """Get a folder's name, optionally together with all of its children.

        The first page comes from the folder endpoint (which also carries the
        name); any further pages come from the items endpoint. Without
        children a single one-item page is requested, which is enough to
        learn the name.

        Args:
            folder_id: Folder ID
            include_children: Page through every child entry (default: True)

        Returns:
            FolderInfo, with an empty ``children`` list when
            ``include_children`` is False
        """
        limit = self.page_size if include_children else 1
        result = self.client.get_folder(folder_id, offset=0, limit=limit)
        first = FolderPage.from_api_response(result)
        info = FolderInfo(
            id=str(result.get("id", folder_id)),
            name=first.name or str(folder_id),
            children=list(first.entries) if include_children else [],
            total_count=first.total_count,
        )
        if not include_children:
            return info

        offset = self.page_size
        page = first
        while len(page.entries) >= self.page_size:
            page = FolderPage.from_api_response(
                self.client.get_folder_items(
                    folder_id, offset=offset, limit=self.page_size
                )
            )
            info.children.extend(page.entries)
            offset += self.page_size

        return info
