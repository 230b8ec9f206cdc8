"""Tests for the identity mapper."""

from conftest import make_event
from outlook_sync.sync.identity import IdentityMapper


def copy_of(source_id, binding_id="b1", external_id=None):
    return make_event(
        f"Copy of {source_id}",
        external_id=external_id or f"copy-{source_id}",
        original_event_id=source_id,
        source_calendar_binding_id=binding_id,
    )


class TestIdentityMapper:
    """Test suite for IdentityMapper."""

    def test_find_copy(self):
        """Test lookup by source external id."""
        mapper = IdentityMapper.build("b1", [copy_of("s1"), copy_of("s2")])

        assert mapper.find_copy("s1").external_id == "copy-s1"
        assert mapper.find_copy("s3") is None
        assert len(mapper) == 2

    def test_ignores_other_bindings_and_non_copies(self):
        """Test only this binding's copies are indexed."""
        mapper = IdentityMapper.build(
            "b1",
            [copy_of("s1", binding_id="b2"), make_event(external_id="plain"), copy_of("s2")],
        )

        assert mapper.find_copy("s1") is None
        assert [copy.original_event_id for copy in mapper.copies] == ["s2"]

    def test_orphans(self):
        """Test copies without an eligible source are orphans."""
        mapper = IdentityMapper.build("b1", [copy_of("s1"), copy_of("s2"), copy_of("s3")])

        orphans = mapper.orphans({"s2"})

        assert sorted(copy.original_event_id for copy in orphans) == ["s1", "s3"]

    def test_duplicates_reported(self):
        """Test the first copy wins and extra copies are reported."""
        first = copy_of("s1", external_id="copy-a")
        second = copy_of("s1", external_id="copy-b")

        mapper = IdentityMapper.build("b1", [first, second])

        assert mapper.find_copy("s1").external_id == "copy-a"
        assert [copy.external_id for copy in mapper.duplicates] == ["copy-b"]
        assert mapper.orphans({"s1"}) == []

    def test_empty(self):
        """Test an empty target calendar."""
        mapper = IdentityMapper.build("b1", [])

        assert len(mapper) == 0
        assert mapper.duplicates == []
        assert mapper.orphans(set()) == []
