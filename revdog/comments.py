"""Comment services that write review results to streams or fan them out."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, TextIO


def _attr(obj: Any, *names: str, default: Any = None) -> Any:
    """Follow an attribute chain, yielding ``default`` where a link is missing."""
    for name in names:
        if obj is None:
            return default
        obj = getattr(obj, name, None)
    return default if obj is None else obj


class CommentService(ABC):
    """Something that accepts review comments."""

    @abstractmethod
    def post(self, comment: Any) -> None:
        """Post one comment."""


class BulkCommentService(CommentService):
    """A comment service that collects comments and sends them on flush."""

    @abstractmethod
    def flush(self) -> None:
        """Send all collected comments."""


class MultiCommentService(BulkCommentService):
    """Duplicates every comment to all of the given services."""

    def __init__(self, *args: CommentService) -> None:
        self.services: tuple[CommentService, ...] = tuple(args)

    def post(self, comment: Any) -> None:
        for service in self.services:
            service.post(comment)

    def flush(self) -> None:
        for service in self.services:
            if isinstance(service, BulkCommentService):
                service.flush()


def multi_comment_service(*args: CommentService) -> MultiCommentService:
    """Create a service that duplicates its posts to all the given services."""
    return MultiCommentService(*args)


class RawCommentWriter(CommentService):
    """Writes the original tool output of each result unformatted."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def post(self, comment: Any) -> None:
        output = _attr(comment, "result", "diagnostic", "original_output", default="")
        self.stream.write(f"{output}\n")


class UnifiedCommentWriter(CommentService):
    """Writes results as ``<file>[:<lnum>[:<col>]]: [<tool name>] <message>``."""

    def __init__(self, stream: TextIO) -> None:
        self.stream = stream

    def post(self, comment: Any) -> None:
        diagnostic = _attr(comment, "result", "diagnostic")
        location = _attr(diagnostic, "location")
        start = _attr(location, "range", "start")
        text = _attr(location, "path", default="")
        line = _attr(start, "line", default=0)
        if line > 0:
            text += f":{line}"
            column = _attr(start, "column", default=0)
            if column > 0:
                text += f":{column}"
        tool_name = _attr(comment, "tool_name", default="")
        message = _attr(diagnostic, "message", default="")
        self.stream.write(f"{text}: [{tool_name}] {message}\n")