"""Pytest collector for YAML test case files.

Each collected file is parsed using the configured `CaseParser` into a
single test case, wrapped into a `CaseItem`.
"""

from typing import TYPE_CHECKING

import pytest

from .case import CaseItem

if TYPE_CHECKING:
    from collections.abc import Iterable


class CaseFile(pytest.File):
    """Pytest file collector for YAML test case files."""

    __test__ = False

    def collect(self) -> 'Iterable[CaseItem]':
        """Collect the test case of the file.

        Returns:
            Iterable with a single `CaseItem`.

        Raises:
            DocumentError: If the file is not a valid test case.
        """
        case = self.config.courier_parser.parse_file(self.path)  # type: ignore[attr-defined]

        yield CaseItem.from_parent(
            self,
            name=case.name,
            case=case,
        )
