import asyncio

import pytest

from profile_views.badge.cache import BadgeTemplateCache, cache_key, digit_width
from profile_views.errors import RenderFailure
from profile_views.models.schemas import BadgeParams


PARAMS = BadgeParams(label="Profile Views", color="brightgreen", style="flat")


def test_digit_width() -> None:
    assert digit_width(0) == 1
    assert digit_width(9) == 1
    assert digit_width(10) == 2
    assert digit_width(99) == 2
    assert digit_width(100) == 3
    with pytest.raises(ValueError):
        digit_width(-1)


def test_cache_key_uses_asterisk_padding() -> None:
    assert cache_key(PARAMS, 2) == "label=Profile+Views&color=brightgreen&style=flat&message=**"


async def test_miss_fetches_placeholder_template_and_substitutes(renderer) -> None:
    cache = BadgeTemplateCache(renderer)

    svg = await cache.render(PARAMS, 42)

    assert renderer.calls == [{"label": "Profile Views", "color": "brightgreen", "style": "flat", "message": "**"}]
    assert "*" not in svg
    assert svg.count("42") == 3
    # The cached template keeps the placeholder, not the substituted count.
    (entry,) = cache.entries()
    assert entry.width == 2
    assert "**" in entry.template


async def test_repeat_render_is_a_cache_hit(renderer) -> None:
    cache = BadgeTemplateCache(renderer)

    first = await cache.render(PARAMS, 42)
    second = await cache.render(PARAMS, 42)
    third = await cache.render(PARAMS, 57)

    assert first == second
    assert "57" in third
    assert len(renderer.calls) == 1


async def test_hit_matches_fresh_render(renderer) -> None:
    cache = BadgeTemplateCache(renderer)
    await cache.render(PARAMS, 10)

    cached = await cache.render(PARAMS, 73)
    fresh = await renderer.render(PARAMS.label, PARAMS.color, PARAMS.style, "73")

    assert cached == fresh


async def test_width_growth_evicts_previous_width(renderer) -> None:
    cache = BadgeTemplateCache(renderer)

    await cache.render(PARAMS, 9)
    await cache.render(PARAMS, 10)

    assert [entry.width for entry in cache.entries()] == [2]

    # A width-1 count recurring must not reuse the width-2 template.
    svg = await cache.render(PARAMS, 7)
    assert [call["message"] for call in renderer.calls] == ["*", "**", "*"]
    assert "<text>7</text>" in svg


async def test_each_params_set_has_its_own_lineage(renderer) -> None:
    cache = BadgeTemplateCache(renderer)
    other = BadgeParams(label="Visitors", color="blue", style="flat-square")

    await cache.render(PARAMS, 99)
    await cache.render(other, 99)
    await cache.render(PARAMS, 100)

    assert sorted((entry.params.label, entry.width) for entry in cache.entries()) == [
        ("Profile Views", 3),
        ("Visitors", 2),
    ]


async def test_max_entries_drops_least_recently_used(renderer) -> None:
    cache = BadgeTemplateCache(renderer, max_entries=2)
    a = BadgeParams(label="a", color="red", style="flat")
    b = BadgeParams(label="b", color="red", style="flat")
    c = BadgeParams(label="c", color="red", style="flat")

    await cache.render(a, 1)
    await cache.render(b, 1)
    await cache.render(a, 2)  # touch a
    await cache.render(c, 1)

    assert sorted(entry.params.label for entry in cache.entries()) == ["a", "c"]
    assert len(cache) == 2


async def test_render_failure_caches_nothing(renderer) -> None:
    renderer.fail = True
    cache = BadgeTemplateCache(renderer)

    with pytest.raises(RenderFailure):
        await cache.render(PARAMS, 42)

    assert len(cache) == 0


async def test_concurrent_misses_leave_a_single_entry(renderer) -> None:
    renderer.delay = 0.01
    cache = BadgeTemplateCache(renderer)

    results = await asyncio.gather(*(cache.render(PARAMS, n) for n in range(42, 62)))

    for n, svg in zip(range(42, 62), results):
        assert f"<text>{n}</text>" in svg
    assert len(cache) == 1
    assert len(renderer.calls) >= 1


async def test_asterisks_in_label_are_substituted_too(renderer) -> None:
    # Known limitation of plain string replacement.
    cache = BadgeTemplateCache(renderer)
    starred = BadgeParams(label="a*b", color="red", style="flat")

    svg = await cache.render(starred, 7)

    assert "<text>a7b</text>" in svg


class _SlowTwoDigitRenderer:
    """Delays only the two-digit placeholder so its miss finishes last."""

    def __init__(self, inner) -> None:
        self.inner = inner

    async def render(self, label: str, color: str, style: str, message: str) -> str:
        if message == "**":
            await asyncio.sleep(0.05)
        return await self.inner.render(label=label, color=color, style=style, message=message)

    async def aclose(self) -> None:
        await self.inner.aclose()


async def test_late_narrower_template_is_not_kept_after_width_grows(renderer) -> None:
    cache = BadgeTemplateCache(_SlowTwoDigitRenderer(renderer))

    ninety_nine, hundred = await asyncio.gather(cache.render(PARAMS, 99), cache.render(PARAMS, 100))
    for n in range(101, 150):
        await cache.render(PARAMS, n)

    assert "<text>99</text>" in ninety_nine
    assert "<text>100</text>" in hundred
    assert [entry.width for entry in cache.entries()] == [3]
