import logging

import attrs
import pytest

from psd_remapper.constants import Anchor, MappingStatus, PayloadStatus
from psd_remapper.context import RemapCache
from psd_remapper.models import (
    ContainerContext,
    MappingContext,
    Rectangle,
    Size,
    TransformedLayer,
)
from psd_remapper.remapper import (
    ANCHORS,
    DegenerateGeometryError,
    RemapJob,
    compute_geometry,
    remap,
    remap_context,
    remap_many,
    sanitize_strategy,
    to_mapping_context,
)
from psd_remapper.resolver import build_mapping_context, resolve_layer
from psd_remapper.strategy import LayerOverride, LayoutStrategy

from .utils import container, layer

SOURCE = Rectangle(0, 0, 100, 200)
TARGET = Rectangle(0, 0, 50, 50)


@pytest.fixture
def layers():
    return [
        layer("layer-0", Rectangle(25, 0, 10, 20)),
        layer(
            "layer-1",
            Rectangle(0, 100, 100, 100),
            children=[layer("layer-1.0", Rectangle(50, 150, 20, 20))],
        ),
    ]


def test_anchor_registry():
    assert set(ANCHORS) == {Anchor.TOP, Anchor.CENTER, Anchor.BOTTOM}
    for key, handler in ANCHORS.items():
        assert handler.anchor == key


def test_compute_geometry_fit():
    geometry = compute_geometry(SOURCE, TARGET)
    assert geometry.scale == 0.25
    assert geometry.anchor_x == 12.5
    assert geometry.anchor_y == 0


@pytest.mark.parametrize(
    "anchor, expected_y",
    [
        (Anchor.TOP, 0.0),
        (Anchor.CENTER, 25.0),
        (Anchor.BOTTOM, 50.0),
        (Anchor.STRETCH, 25.0),
    ],
)
def test_compute_geometry_anchor(anchor, expected_y):
    strategy = LayoutStrategy(suggested_scale=0.25, anchor=anchor)
    geometry = compute_geometry(SOURCE, Rectangle(0, 0, 100, 100), strategy)
    assert geometry.scale == 0.25
    assert geometry.anchor_x == 37.5
    assert geometry.anchor_y == expected_y


@pytest.mark.parametrize(
    "source", [Rectangle(0, 0, 0, 100), Rectangle(0, 0, 100, 0), Rectangle()]
)
def test_compute_geometry_degenerate(source):
    with pytest.raises(DegenerateGeometryError):
        compute_geometry(source, TARGET)


def test_remap(layers):
    result = remap(layers, SOURCE, TARGET)
    assert result.ok
    assert result.status == PayloadStatus.SUCCESS
    assert result.scale == 0.25
    assert result.metrics.source == Size(100, 200)
    assert result.metrics.target == Size(50, 50)
    assert result.message is None

    first = result.layers[0]
    assert isinstance(first, TransformedLayer)
    assert first.id == "layer-0"
    assert first.coords.x == pytest.approx(18.75)
    assert first.coords.y == pytest.approx(0)
    assert first.coords.w == pytest.approx(2.5)
    assert first.coords.h == pytest.approx(5)
    assert first.transform.scale_x == 0.25
    assert first.transform.offset_x == pytest.approx(18.75)


def test_remap_nested_share_geometry(layers):
    result = remap(layers, SOURCE, TARGET)
    group = result.layers[1]
    assert group.coords.x == pytest.approx(12.5)
    assert group.coords.y == pytest.approx(25)
    (child,) = group.children
    assert isinstance(child, TransformedLayer)
    assert child.coords.x == pytest.approx(12.5 + 50 * 0.25)
    assert child.coords.y == pytest.approx(150 * 0.25)
    assert child.coords.w == pytest.approx(5)


def test_remap_fits_inside_target():
    full = layer("layer-0", SOURCE)
    for target in [TARGET, Rectangle(10, 20, 300, 40), Rectangle(-50, 5, 7, 900)]:
        coords = remap([full], SOURCE, target).layers[0].coords
        assert coords.x >= target.x - 1e-9
        assert coords.y >= target.y - 1e-9
        assert coords.right <= target.right + 1e-9
        assert coords.bottom <= target.bottom + 1e-9
        # Centered on the axis that does not fill the target.
        assert coords.x - target.x == pytest.approx(target.right - coords.right)
        assert coords.y - target.y == pytest.approx(target.bottom - coords.bottom)


def test_remap_translation_invariant():
    moved = [
        layer("layer-0", Rectangle(125, 300, 10, 20)),
    ]
    shifted = remap(moved, Rectangle(100, 300, 100, 200), TARGET)
    assert shifted.layers[0].coords.x == pytest.approx(18.75)
    assert shifted.layers[0].coords.y == pytest.approx(0)


def test_remap_keeps_attributes():
    hidden = layer("layer-0", Rectangle(0, 0, 10, 10), is_visible=False, opacity=0.5)
    (result,) = remap([hidden], SOURCE, TARGET).layers
    assert result.name == hidden.name
    assert result.type == hidden.type
    assert not result.is_visible
    assert result.opacity == 0.5


def test_remap_degenerate(layers, caplog):
    with caplog.at_level(logging.WARNING, logger="psd_remapper"):
        result = remap(layers, Rectangle(0, 0, 0, 200), TARGET)
    assert not result.ok
    assert result.status == PayloadStatus.ERROR
    assert result.layers == ()
    assert "degenerate" in result.message
    assert result.metrics.source == Size(0, 200)


def test_remap_empty_layers():
    result = remap([], SOURCE, TARGET)
    assert result.ok
    assert result.layers == ()


def test_remap_is_pure(layers):
    before = list(layers)
    assert remap(layers, SOURCE, TARGET) == remap(layers, SOURCE, TARGET)
    assert layers == before


def test_remap_strategy_scale(layers):
    strategy = LayoutStrategy(suggested_scale=0.5)
    result = remap(layers, SOURCE, TARGET, strategy)
    assert result.scale == 0.5
    assert result.strategy == strategy
    # anchor_x = (50 - 50) / 2, anchor_y = (50 - 100) / 2
    assert result.layers[0].coords.x == pytest.approx(12.5)
    assert result.layers[0].coords.y == pytest.approx(-25)


def test_remap_strategy_override(layers):
    strategy = LayoutStrategy(
        suggested_scale=0.5,
        overrides=[
            LayerOverride("layer-0", x_offset=5, y_offset=-3, individual_scale=2)
        ],
    )
    result = remap(layers, SOURCE, TARGET, strategy)
    first = result.layers[0]
    assert first.coords.x == pytest.approx(12.5 + 5)
    assert first.coords.y == pytest.approx(-25 - 3)
    assert first.transform.scale_x == pytest.approx(1.0)
    assert first.coords.w == pytest.approx(10)
    assert first.coords.h == pytest.approx(20)
    # Other layers keep the global transform.
    assert result.layers[1].transform.scale_x == pytest.approx(0.5)


def test_remap_strategy_override_nested(layers):
    strategy = LayoutStrategy(
        suggested_scale=0.25,
        overrides=[LayerOverride("layer-1.0", x_offset=1, individual_scale=0.5)],
    )
    result = remap(layers, SOURCE, TARGET, strategy)
    group = result.layers[1]
    assert group.transform.scale_x == pytest.approx(0.25)
    child = group.children[0]
    assert child.transform.scale_x == pytest.approx(0.125)
    assert child.coords.x == pytest.approx(12.5 + 50 * 0.25 + 1)


def test_remap_invalid_strategy_falls_back(layers):
    baseline = remap(layers, SOURCE, TARGET)
    for scale in [0, -1, float("nan"), float("inf")]:
        result = remap(layers, SOURCE, TARGET, LayoutStrategy(suggested_scale=scale))
        assert result.strategy is None
        assert result.layers == baseline.layers


def test_sanitize_strategy(layers, caplog):
    assert sanitize_strategy(None, layers) is None

    valid = LayoutStrategy(
        suggested_scale=1.0, overrides=[LayerOverride("layer-1.0", individual_scale=2)]
    )
    assert sanitize_strategy(valid, layers) is valid

    strategy = LayoutStrategy(
        suggested_scale=1.0,
        overrides=[
            LayerOverride("layer-0", individual_scale=0),
            LayerOverride("layer-7"),
            LayerOverride("layer-1", x_offset=4),
        ],
    )
    with caplog.at_level(logging.WARNING, logger="psd_remapper"):
        sanitized = sanitize_strategy(strategy, layers)
    assert [o.layer_id for o in sanitized.overrides] == ["layer-1"]
    assert sanitized.suggested_scale == 1.0
    assert "layer-7" in caplog.text


@pytest.mark.parametrize(
    "offsets",
    [
        {"xOffset": "nan"},
        {"yOffset": "inf"},
        {"xOffset": float("-inf"), "yOffset": 1},
    ],
)
def test_remap_non_finite_offset(layers, offsets, caplog):
    strategy = LayoutStrategy.from_dict(
        {"suggestedScale": 0.5, "overrides": [dict(layerId="layer-0", **offsets)]}
    )
    with caplog.at_level(logging.WARNING, logger="psd_remapper"):
        result = remap(layers, SOURCE, TARGET, strategy)
    assert result.status == PayloadStatus.SUCCESS
    assert result.strategy.overrides == ()
    assert "invalid offset" in caplog.text
    baseline = remap(layers, SOURCE, TARGET, LayoutStrategy(suggested_scale=0.5))
    assert result.layers == baseline.layers


def test_remap_context(template, design):
    symbols = template.containers[0]
    context = build_mapping_context(symbols, resolve_layer(symbols.name, design))
    target = template.containers[2]
    payload = remap_context(context, target, source_id="document.psd")
    assert payload.ok
    assert payload.source_container == "SYMBOLS"
    assert payload.target_container == "COUNTERS"
    assert payload.source_id == "document.psd"
    # min(500 / 500, 400 / 400)
    assert payload.scale_factor == 1.0
    assert payload.metrics.target == Size(500, 400)
    wild = payload.layers[0]
    assert wild.coords.x == pytest.approx(550)
    assert wild.coords.y == pytest.approx(450)


def test_remap_context_with_container_context(template, design):
    symbols = template.containers[0]
    context = build_mapping_context(symbols, resolve_layer(symbols.name, design))
    target = ContainerContext.from_definition(template.containers[1], template.canvas)
    payload = remap_context(context, target)
    assert payload.target_container == "BG"
    assert payload.scale_factor == 2.0
    assert payload.source_id is None


def test_to_mapping_context(template, design):
    symbols = template.containers[0]
    context = build_mapping_context(symbols, resolve_layer(symbols.name, design))
    target = ContainerContext.from_definition(template.containers[2], template.canvas)
    payload = remap_context(context, target)
    transformed = to_mapping_context(payload, target)
    assert isinstance(transformed, MappingContext)
    assert transformed.status == MappingStatus.TRANSFORMED
    assert transformed.container == target
    assert transformed.layers == payload.layers


def _context(name, bounds, layers):
    return MappingContext(
        container=ContainerContext.from_definition(container(name, bounds)),
        layers=layers,
    )


def test_remap_many(layers):
    target = container("T", TARGET)
    jobs = [
        RemapJob(_context("A", SOURCE, layers), target, source_id="a.psd"),
        RemapJob(_context("B", Rectangle(0, 0, 0, 0), layers), target),
        RemapJob(_context("C", Rectangle(0, 0, 50, 50), layers), target),
    ]
    payloads = remap_many(jobs)
    assert [p.source_container for p in payloads] == ["A", "B", "C"]
    assert [p.status for p in payloads] == [
        PayloadStatus.SUCCESS,
        PayloadStatus.ERROR,
        PayloadStatus.SUCCESS,
    ]
    assert payloads[0].source_id == "a.psd"
    assert payloads[2].scale_factor == 1.0


def test_remap_many_cache(layers):
    target = container("T", TARGET)
    job = RemapJob(_context("A", SOURCE, layers), target)
    cache = RemapCache()
    first = remap_many([job, job], cache=cache)
    assert first[0] is first[1]
    assert cache.hits == 1
    assert cache.misses == 1

    moved = attrs.evolve(job, target=container("T", Rectangle(0, 0, 60, 50)))
    remap_many([moved], cache=cache)
    assert cache.misses == 2
    assert len(cache) == 2


def test_remap_many_cache_resized_source(layers):
    target = container("T", Rectangle(0, 0, 100, 100))
    small = RemapJob(_context("A", Rectangle(0, 0, 50, 50), layers), target)
    large = RemapJob(_context("A", Rectangle(0, 0, 200, 200), layers), target)
    cache = RemapCache()
    first, second = remap_many([small, large], cache=cache)
    assert first.scale_factor == 2.0
    assert second.scale_factor == 0.5
    assert cache.misses == 2
    assert cache.hits == 0
