"""Listing query service -- filtered, searchable, paginated submission views.

Pages beyond the last one come back empty; ``current_page`` echoes the
requested page and ``out_of_range`` is set, so the caller can tell "no more
results" apart from "no results at all".
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from notemod.errors import NotFound, ValidationError
from notemod.submissions.models import (
    Page,
    Pagination,
    Submission,
    SubmissionFilter,
    SubmissionStatus,
)
from notemod.submissions.repository import SubmissionRepository


@dataclass(frozen=True)
class ListQuery:
    """Listing request as received from a caller."""

    status: Optional[SubmissionStatus | str] = None
    search_text: Optional[str] = None
    page: int = 1
    page_size: Optional[int] = None


class ListingService:
    """Read-only views over the submission repository."""

    def __init__(
        self,
        repository: SubmissionRepository,
        default_page_size: int = 10,
        max_page_size: int = 100,
    ) -> None:
        self._repository = repository
        self._default_page_size = default_page_size
        self._max_page_size = max_page_size

    def _build_filter(self, query: ListQuery) -> SubmissionFilter:
        status = query.status
        if status in (None, ""):
            status = None
        else:
            try:
                status = SubmissionStatus(status)
            except ValueError:
                raise ValidationError(
                    f"Invalid status: {status}. "
                    f"Valid statuses: {[s.value for s in SubmissionStatus]}"
                )
        return SubmissionFilter(status=status, search_text=(query.search_text or "").strip())

    def list_submissions(self, query: ListQuery) -> Page:
        """Return one page of submissions matching *query*."""
        page_size = query.page_size if query.page_size is not None else self._default_page_size
        if query.page < 1:
            raise ValidationError("page must be 1 or greater")
        if not 1 <= page_size <= self._max_page_size:
            raise ValidationError(f"page_size must be between 1 and {self._max_page_size}")

        criteria = self._build_filter(query)
        items, total = self._repository.query(
            criteria, offset=(query.page - 1) * page_size, limit=page_size
        )

        total_pages = math.ceil(total / page_size)
        out_of_range = query.page > max(total_pages, 1)
        return Page(
            items=items,
            pagination=Pagination(
                current_page=query.page,
                total_pages=total_pages,
                total_items=total,
                page_size=page_size,
                has_next=query.page < total_pages,
                has_previous=query.page > 1,
                out_of_range=out_of_range,
            ),
        )

    def get_submission(self, submission_id: str) -> Submission:
        submission = self._repository.get(submission_id)
        if submission is None:
            raise NotFound(f"Submission '{submission_id}' not found")
        return submission
