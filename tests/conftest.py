"""Pytest configuration for psd-remapper tests."""

from typing import Any

import pytest

from psd_remapper.adapter import to_serializable_tree
from psd_remapper.document import DocumentTree
from psd_remapper.models import SerializableLayer, TemplateMetadata
from psd_remapper.template import extract_template_metadata

from .psd_remapper.utils import make_document


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "codec: mark test as writing and reading real PSD files through psd-tools",
    )


@pytest.fixture
def document() -> DocumentTree:
    return make_document()


@pytest.fixture
def template(document: DocumentTree) -> TemplateMetadata:
    return extract_template_metadata(document)


@pytest.fixture
def design(document: DocumentTree) -> list[SerializableLayer]:
    return to_serializable_tree(document.children)
