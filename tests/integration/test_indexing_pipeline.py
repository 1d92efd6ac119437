"""End-to-end indexing of the fixture graph into a real ChromaDB store."""

import pytest

from loggraph.models.config import IndexingConfig
from loggraph.models.entities import Block, BlockNode, File, FileNode, StoreRecord
from loggraph.services.document_store import BLOCKS, FILES
from loggraph.services.indexer import Indexer

BASIC_PAGE = "tests___parsing___files___basic.md"
JOURNAL_BLOCK_ID = "6650a1b2-0000-4000-8000-000000000001"


def _stored(store, collection, entity_type):
    result = store.collections[collection].get(include=["documents", "metadatas"])
    return [
        entity_type.from_record(StoreRecord(id=i, document=d, metadata=m))
        for i, d, m in zip(result["ids"], result["documents"], result["metadatas"])
    ]


def _files_by_title(store):
    return {file.title: file for file in _stored(store, FILES, File)}


def _blocks_by_content(store):
    return {block.content: block for block in _stored(store, BLOCKS, Block)}


class TestFixtureGraph:
    """Tests that index the fixture graph end to end."""

    @pytest.mark.asyncio
    async def test_report_totals(self, fixture_graph, store):
        """Test counts of files, blocks, nodes and edges."""
        report = await Indexer(store).index_files(fixture_graph)

        assert report.files_indexed == 8
        assert report.blocks_indexed == 14
        assert report.skipped == []
        assert report.nodes == 22
        assert report.edges == 16
        assert store.count(FILES) == 8
        assert store.count(BLOCKS) == 14

    @pytest.mark.asyncio
    async def test_basic_file_fields(self, fixture_graph, store):
        """Test the File built from a page with tags, properties and links."""
        await Indexer(store).index_files(fixture_graph)

        file = _files_by_title(store)["tests/parsing/files/basic"]

        assert file.path == str(fixture_graph / "pages" / BASIC_PAGE)
        assert file.tags == ["foo", "bar", "tag", "multi word tag"]
        assert file.properties == {"foo": "bar"}
        assert file.wikilinks == ["wikilink"]

    @pytest.mark.asyncio
    async def test_hierarchy_blocks(self, fixture_graph, store):
        """Test parent links of a nested page."""
        await Indexer(store).index_files(fixture_graph)

        files = _files_by_title(store)
        blocks = _blocks_by_content(store)
        hierarchy_id = files["tests/parsing/blocks/hierarchy"].id

        names = ["Lorem", "Ipsum", "Dolor", "Sit", "Amet"]
        by_name = {name: blocks[f"- {name}"] for name in names}

        assert all(block.file_id == hierarchy_id for block in by_name.values())
        assert by_name["Lorem"].parent_block_id is None
        assert by_name["Amet"].parent_block_id is None
        assert by_name["Ipsum"].parent_block_id == by_name["Lorem"].id
        assert by_name["Dolor"].parent_block_id == by_name["Lorem"].id
        assert by_name["Sit"].parent_block_id == by_name["Dolor"].id

    @pytest.mark.asyncio
    async def test_edges(self, fixture_graph, store):
        """Test tag, wikilink and parent edges across files."""
        indexer = Indexer(store)
        await indexer.index_files(fixture_graph)
        graph = indexer.graph

        files = _files_by_title(store)
        blocks = _blocks_by_content(store)
        basic = files["tests/parsing/files/basic"]

        for title in ("foo", "bar", "tag", "multi word tag", "wikilink"):
            assert graph.has_edge(basic.id, files[title].id)

        tagged = blocks["- A #tag and a #[[multi word tag]]"]
        assert graph.has_edge(tagged.id, files["tag"].id)
        assert graph.has_edge(tagged.id, files["multi word tag"].id)
        assert not graph.has_edge(tagged.id, basic.id)

    @pytest.mark.asyncio
    async def test_journal_forward_reference(self, fixture_graph, store):
        """Test that a journal block links to pages walked after it."""
        indexer = Indexer(store)
        await indexer.index_files(fixture_graph)

        files = _files_by_title(store)
        journal_block = await store.get_block(JOURNAL_BLOCK_ID)
        follow_up = _blocks_by_content(store)["- Follow up under #foo"]

        assert journal_block.wikilinks == ["wikilink"]
        assert indexer.graph.has_edge(JOURNAL_BLOCK_ID, files["wikilink"].id)
        assert follow_up.parent_block_id == JOURNAL_BLOCK_ID
        assert indexer.graph.has_edge(follow_up.id, JOURNAL_BLOCK_ID)
        assert indexer.graph.has_edge(follow_up.id, files["foo"].id)

    @pytest.mark.asyncio
    async def test_every_stored_entity_has_a_node(self, fixture_graph, store):
        """Test that stored entities and graph nodes correspond one to one."""
        indexer = Indexer(store)
        await indexer.index_files(fixture_graph)

        stored_files = {f.id for f in _stored(store, FILES, File)}
        stored_blocks = {b.id for b in _stored(store, BLOCKS, Block)}
        nodes = indexer.graph.nodes()

        assert {n.id for n in nodes if isinstance(n, FileNode)} == stored_files
        assert {n.id for n in nodes if isinstance(n, BlockNode)} == stored_blocks

    @pytest.mark.asyncio
    async def test_files_only_pass(self, fixture_graph, store):
        """Test a pass that indexes pages without their blocks."""
        indexer = Indexer(store, config=IndexingConfig(index_blocks=False))
        report = await indexer.index_files(fixture_graph)

        assert report.blocks_indexed == 0
        assert report.nodes == 8
        assert report.edges == 7
        assert store.count(BLOCKS) == 0

    @pytest.mark.asyncio
    async def test_stable_file_ids_across_passes(self, fixture_graph, store):
        """Test that stable ids make a second pass overwrite the first."""
        config = IndexingConfig(stable_file_ids=True)

        first = await Indexer(store, config=config).index_files(fixture_graph)
        await Indexer(store, config=config).index_files(fixture_graph)

        assert store.count(FILES) == first.files_indexed
