"""
Update-mode policy and marker table tests
"""

import pytest

from dvserializer.lib.policy import query_shouldSkip
from dvserializer.models.markers import (
    INLINE_QUERY_FLAGS,
    QUERY_FLAGS,
    FlagVariant,
    SyntaxFamily,
    UpdateMode,
    flagClose_variant,
    flagSpec_find,
    resultMarkers_get,
    scriptResultMarkers_get,
)


class TestShouldSkip:
    """Test the skip decision for every mode"""

    def test_manual_trigger_never_skips(self):
        """A user-triggered pass evaluates everything"""
        for mode in UpdateMode:
            assert query_shouldSkip(mode, True, False) is False
            assert query_shouldSkip(mode, True, True) is False

    def test_auto(self):
        """AUTO is always evaluated"""
        assert query_shouldSkip(UpdateMode.AUTO, False, False) is False
        assert query_shouldSkip(UpdateMode.AUTO, False, True) is False

    def test_manual(self):
        """MANUAL is skipped on automatic passes"""
        assert query_shouldSkip(UpdateMode.MANUAL, False, False) is True
        assert query_shouldSkip(UpdateMode.MANUAL, False, True) is True

    def test_once(self):
        """ONCE is skipped once a result exists"""
        assert query_shouldSkip(UpdateMode.ONCE, False, False) is False
        assert query_shouldSkip(UpdateMode.ONCE, False, True) is True

    def test_once_and_eject(self):
        """ONCE_AND_EJECT is evaluated on automatic passes"""
        assert query_shouldSkip(UpdateMode.ONCE_AND_EJECT, False, False) is False


class TestMarkerTables:
    """Test marker lookup helpers"""

    def test_flagSpec_find(self):
        """Lookup by mode and family"""
        spec = flagSpec_find(QUERY_FLAGS, UpdateMode.ONCE, SyntaxFamily.LEGACY)
        assert spec.flag == "<!-- QueryToSerializeOnce: "
        assert spec.flag_trimmed == "<!-- QueryToSerializeOnce:"

    def test_flagSpec_find_inline(self):
        """Inline specs carry their end marker"""
        spec = flagSpec_find(INLINE_QUERY_FLAGS, UpdateMode.AUTO, SyntaxFamily.ALTERNATIVE)
        assert spec.end_marker == "<!-- /dataview-serializer-iq -->"

    def test_every_mode_and_family_present(self):
        """Each table has one spec per mode and family"""
        for table in (QUERY_FLAGS, INLINE_QUERY_FLAGS):
            for mode in UpdateMode:
                for family in SyntaxFamily:
                    assert flagSpec_find(table, mode, family).update_mode is mode

    def test_variant_resolve(self):
        """Marker variant follows the line"""
        spec = flagSpec_find(QUERY_FLAGS, UpdateMode.AUTO, SyntaxFamily.LEGACY)
        assert spec.variant_resolve("<!-- QueryToSerialize: LIST -->", 0) == "<!-- QueryToSerialize: "
        assert spec.variant_resolve("<!-- QueryToSerialize:LIST -->", 0) == "<!-- QueryToSerialize:"

    def test_variant_resolve_position(self):
        """Only the marker at the given position decides the variant"""
        spec = flagSpec_find(QUERY_FLAGS, UpdateMode.AUTO, SyntaxFamily.LEGACY)
        line = "<!-- QueryToSerialize:LIST --> <!-- QueryToSerialize: TABLE -->"
        assert spec.variant_resolve(line, 0) == "<!-- QueryToSerialize:"
        assert spec.variant_resolve(line, line.rindex("<!--")) == "<!-- QueryToSerialize: "

    def test_flagClose_variant(self):
        """Closing marker variants"""
        assert flagClose_variant(" -->") is FlagVariant.WITH_SPACE
        assert flagClose_variant("-->") is FlagVariant.TRIMMED

    def test_result_markers(self):
        """Result markers follow the family"""
        assert resultMarkers_get(SyntaxFamily.LEGACY) == (
            "<!-- SerializedQuery: ",
            "<!-- SerializedQuery END -->",
        )
        assert resultMarkers_get(SyntaxFamily.ALTERNATIVE) == (
            "<!-- dataview-serializer-result: ",
            "<!-- dataview-serializer-result-end -->",
        )
        assert scriptResultMarkers_get(SyntaxFamily.LEGACY) == (
            "<!-- SerializedDataviewJS -->",
            "<!-- SerializedDataviewJS END -->",
        )

    def test_unknown_spec(self):
        """Lookup in an empty table fails"""
        with pytest.raises(KeyError):
            flagSpec_find([], UpdateMode.AUTO, SyntaxFamily.LEGACY)
