import pytest

from azsdkgen.codegen.spec_index import SpecIndex

from .fixtures import AZURE_CORPUS, write_corpus


@pytest.fixture
def load_index(tmp_path):
    """Factory writing a corpus to ``tmp_path`` and indexing it."""

    def load(corpus: dict, root: str = '.', **kwargs) -> SpecIndex:
        write_corpus(tmp_path, corpus)
        return SpecIndex.load(tmp_path / root, **kwargs)

    return load


@pytest.fixture
def azure_specs(tmp_path):
    """Root directory of the Azure-style corpus."""
    write_corpus(tmp_path, AZURE_CORPUS)
    return tmp_path / 'specification'


@pytest.fixture
def azure_index(azure_specs):
    return SpecIndex.load(azure_specs)
