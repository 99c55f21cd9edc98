from lucius.packs import DEFAULT_EMPTY, Layer, ResolvedLayer, compose
from lucius.packs.composer import missing_layer_text


def _resolved(name, priority, content, title=""):
    return ResolvedLayer(
        layer=Layer(name=name, priority=priority, title=title),
        content=content,
        source_used="literal-default" if content else DEFAULT_EMPTY,
        resolved_at="2026-01-01T00:00:00+00:00",
    )


def test_order_follows_priority_not_completion_order():
    a = _resolved("a", 1, "X")
    b = _resolved("b", 2, "Y")

    forward = compose([a, b])
    backward = compose([b, a])

    assert forward == backward
    assert forward.index("X") < forward.index("Y")


def test_equal_priorities_break_ties_by_name():
    doc = compose([_resolved("zeta", 0, "Z"), _resolved("alpha", 0, "A")])

    assert doc.index("LAYER: alpha") < doc.index("LAYER: zeta")


def test_empty_layer_is_replaced_by_placeholder_naming_it():
    doc = compose(
        [
            _resolved("core", 0, "CORE RULES"),
            _resolved("product", 1, "PRODUCT FACTS"),
            _resolved("overlay", 2, ""),
        ]
    )

    assert missing_layer_text("overlay") in doc
    assert "=== LAYER: overlay ===" in doc
    assert "CORE RULES" in doc and "PRODUCT FACTS" in doc
    assert doc.count("is not available on the server") == 1


def test_blank_content_counts_as_missing():
    doc = compose([_resolved("product", 1, "  \n\t")])

    assert missing_layer_text("product") in doc


def test_boundary_markers_name_layer_and_title():
    doc = compose([_resolved("product", 1, "facts", title="Knowledge pack")])

    assert doc == (
        "=== LAYER: product (Knowledge pack) ===\n"
        "facts\n"
        "=== END LAYER: product ==="
    )


def test_compose_is_deterministic():
    layers = [_resolved("core", 0, "one"), _resolved("product", 1, ""), _resolved("overlay", 2, "three")]

    assert compose(layers) == compose(list(reversed(layers)))
    assert compose(layers).encode("utf-8") == compose(layers).encode("utf-8")


def test_timestamps_do_not_leak_into_document():
    early = _resolved("core", 0, "same")
    late = ResolvedLayer(
        layer=early.layer,
        content="same",
        source_used="remote",
        resolved_at="2030-12-31T23:59:59+00:00",
    )

    assert compose([early]) == compose([late])
