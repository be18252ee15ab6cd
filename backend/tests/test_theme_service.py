"""Tests for theme resolution, merging, caching and rendering."""

import copy

import pytest
from sqlalchemy.exc import OperationalError

from conftest import FakeThemeRepository
from theme_service.core.cache import TTLCache
from theme_service.schemas.theme import ThemePatch
from theme_service.services.theme_defaults import DEFAULT_THEME_COLORS, default_theme
from theme_service.services.theme_service import (
    MergePolicy,
    ThemeNotFoundError,
    ThemeService,
    ThemeServiceError,
    ThemeStorageError,
    ThemeValidationError,
    merge_theme,
    validate_theme_patch,
)


class BrokenRepository(FakeThemeRepository):
    """Repository whose backend is unreachable."""

    async def find_one(self, key):
        self.calls.append("find_one")
        raise OperationalError("SELECT", {}, Exception("connection refused"))


@pytest.fixture
def user_service(user_repository, cache) -> ThemeService:
    return ThemeService(user_repository, cache, merge_policy=MergePolicy.DEFAULTS)


@pytest.fixture
def site_service(site_repository, cache, asset_store) -> ThemeService:
    return ThemeService(
        site_repository,
        cache,
        merge_policy=MergePolicy.STORED,
        site=True,
        asset_store=asset_store,
    )


class TestValidateThemePatch:
    def test_patch_without_colors_is_valid(self):
        validate_theme_patch(ThemePatch(radius=1.0))

    def test_complete_colors_are_valid(self, full_colors):
        validate_theme_patch(ThemePatch(colors=full_colors))

    def test_missing_role_is_named(self, full_colors):
        del full_colors["ring"]
        with pytest.raises(ThemeValidationError) as exc_info:
            validate_theme_patch(ThemePatch(colors=full_colors))
        assert "ring" in exc_info.value.detail

    def test_blank_role_is_rejected(self, full_colors):
        full_colors["border"] = "   "
        with pytest.raises(ThemeValidationError, match="border"):
            validate_theme_patch(ThemePatch(colors=full_colors))


class TestMergeTheme:
    """Test both merge policies."""

    @pytest.fixture
    def stored(self):
        theme = default_theme()
        theme.update(
            name="Stored",
            radius=1.25,
            shadows={"enabled": False, "opacity": 0.2, "blur": 6},
            fonts={"sans": "Roboto", "serif": "Lora", "mono": "Fira Code"},
        )
        theme["colors"]["primary"] = "#123456"
        return theme

    def test_defaults_policy_ignores_stored(self, stored):
        merged = merge_theme(ThemePatch(radius=0.8), stored, MergePolicy.DEFAULTS)
        expected = {**default_theme(), "radius": 0.8}
        assert merged == expected

    def test_stored_policy_keeps_omitted_fields(self, stored):
        merged = merge_theme(ThemePatch(name="New"), stored, MergePolicy.STORED)
        assert merged["name"] == "New"
        assert merged["radius"] == 1.25
        assert merged["colors"]["primary"] == "#123456"
        assert merged["shadows"] == stored["shadows"]
        assert merged["fonts"] == stored["fonts"]

    def test_stored_policy_without_record_uses_defaults(self):
        merged = merge_theme(ThemePatch(name="New"), None, MergePolicy.STORED)
        assert merged == {**default_theme(), "name": "New"}

    def test_partial_shadows_merge_per_field(self, stored):
        patch = ThemePatch(shadows={"opacity": 0.1})

        assert merge_theme(patch, stored, MergePolicy.STORED)["shadows"] == {
            "enabled": False,
            "opacity": 0.1,
            "blur": 6,
        }
        assert merge_theme(patch, stored, MergePolicy.DEFAULTS)["shadows"] == {
            "enabled": True,
            "opacity": 0.1,
            "blur": 2,
        }

    def test_partial_fonts_merge_per_field(self, stored):
        merged = merge_theme(ThemePatch(fonts={"mono": "Menlo"}), stored, MergePolicy.STORED)
        assert merged["fonts"] == {"sans": "Roboto", "serif": "Lora", "mono": "Menlo"}

    def test_colors_replaced_whole(self, stored, full_colors):
        full_colors["brand"] = "#ff00ff"
        merged = merge_theme(ThemePatch(colors=full_colors), stored, MergePolicy.STORED)
        assert merged["colors"] == full_colors

    def test_stored_record_not_mutated(self, stored):
        before = copy.deepcopy(stored)
        merge_theme(ThemePatch(shadows={"blur": 1}), stored, MergePolicy.STORED)
        assert stored == before
        assert stored["shadows"]["blur"] == 6


class TestGetTheme:
    @pytest.mark.asyncio
    async def test_first_read_creates_default(self, user_service, user_repository):
        theme = await user_service.get_theme("42")

        assert theme.user_id == "42"
        assert theme.radius == 0.5
        assert theme.colors == DEFAULT_THEME_COLORS
        assert theme.shadows.enabled is True
        assert user_repository.insert_count == 1

    @pytest.mark.asyncio
    async def test_second_read_is_served_from_cache(self, user_service, user_repository):
        await user_service.get_theme("42")
        await user_service.get_theme("42")

        assert user_repository.find_count == 1
        assert user_repository.insert_count == 1

    @pytest.mark.asyncio
    async def test_identities_are_isolated(self, user_service):
        await user_service.upsert_theme("42", ThemePatch(name="Mine"))
        other = await user_service.get_theme("7")
        assert other.name == "My Theme"

    @pytest.mark.asyncio
    async def test_returned_theme_is_a_copy(self, user_service):
        theme = await user_service.get_theme("42")
        theme.colors["primary"] = "#ff0000"

        again = await user_service.get_theme("42")
        assert again.colors["primary"] == DEFAULT_THEME_COLORS["primary"]

    @pytest.mark.asyncio
    async def test_expired_entry_reloads(self, user_service, user_repository, clock):
        await user_service.get_theme("42")
        clock.advance_ms(300001)
        await user_service.get_theme("42")
        assert user_repository.find_count == 2

    @pytest.mark.asyncio
    async def test_disabled_cache_reads_storage_every_time(self, user_repository):
        service = ThemeService(user_repository, TTLCache(enabled=False))
        user_repository.rows["42"] = {**default_theme(), "id": 1, "user_id": "42"}

        await service.get_theme("42")
        await service.get_theme("42")

        assert user_repository.find_count == 2
        assert user_repository.insert_count == 0


class TestUpsertTheme:
    """Test theme writes."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, user_service, full_colors):
        await user_service.upsert_theme("42", ThemePatch(colors=full_colors, radius=0.8))
        theme = await user_service.get_theme("42")

        assert theme.radius == 0.8
        assert theme.colors == full_colors

    @pytest.mark.asyncio
    async def test_write_without_record_inserts(self, user_service, user_repository):
        theme = await user_service.upsert_theme("42", ThemePatch(name="Fresh"))
        assert theme.name == "Fresh"
        assert user_repository.insert_count == 1
        assert user_repository.update_count == 0

    @pytest.mark.asyncio
    async def test_write_with_record_updates(self, user_service, user_repository):
        await user_service.get_theme("42")
        await user_service.upsert_theme("42", ThemePatch(name="Renamed"))

        assert user_repository.insert_count == 1
        assert user_repository.update_count == 1
        assert user_repository.rows["42"]["name"] == "Renamed"

    @pytest.mark.asyncio
    async def test_user_write_falls_back_to_defaults(self, user_service):
        await user_service.upsert_theme("42", ThemePatch(name="First", radius=1.5))
        theme = await user_service.upsert_theme("42", ThemePatch(name="Second"))

        assert theme.name == "Second"
        assert theme.radius == 0.5

    @pytest.mark.asyncio
    async def test_site_write_keeps_stored_fields(self, site_service):
        await site_service.upsert_theme("global", ThemePatch(name="Brand", radius=1.5))
        theme = await site_service.upsert_theme("global", ThemePatch(fonts={"sans": "Roboto"}))

        assert theme.name == "Brand"
        assert theme.radius == 1.5
        assert theme.fonts.sans == "Roboto"
        assert theme.fonts.serif == "Source Serif 4"

    @pytest.mark.asyncio
    async def test_invalid_write_touches_nothing(self, user_service, user_repository, full_colors):
        await user_service.upsert_theme("42", ThemePatch(name="Kept"))
        calls_before = list(user_repository.calls)
        del full_colors["ring"]

        with pytest.raises(ThemeValidationError, match="ring"):
            await user_service.upsert_theme("42", ThemePatch(colors=full_colors, name="Lost"))

        assert user_repository.calls == calls_before
        theme = await user_service.get_theme("42")
        assert theme.name == "Kept"

    @pytest.mark.asyncio
    async def test_write_invalidates_cached_record(self, user_service):
        await user_service.get_theme("42")
        await user_service.upsert_theme("42", ThemePatch(radius=2.0))

        theme = await user_service.get_theme("42")
        assert theme.radius == 2.0

    @pytest.mark.asyncio
    async def test_write_invalidates_cached_css(self, user_service):
        await user_service.get_theme("42")
        before = await user_service.render_css("42")
        await user_service.upsert_theme("42", ThemePatch(radius=2.0))

        after = await user_service.render_css("42")
        assert "--radius: 0.5rem;" in before
        assert "--radius: 2rem;" in after

    @pytest.mark.asyncio
    async def test_load_racing_a_write_is_not_cached(self, cache, full_colors):
        service_box = {}

        class RacingRepository(FakeThemeRepository):
            """Simulates a write landing while a read is loading."""

            async def find_one(self, key):
                row = await super().find_one(key)
                if self.find_count == 1:
                    service_box["service"].invalidate(key)
                return row

        repository = RacingRepository()
        repository.rows["42"] = {**default_theme(), "id": 1, "user_id": "42"}
        service = ThemeService(repository, cache)
        service_box["service"] = service

        await service.get_theme("42")
        await service.get_theme("42")
        assert repository.find_count == 2


class TestResetTheme:
    @pytest.mark.asyncio
    async def test_reset_restores_defaults(self, user_service, user_repository, full_colors):
        await user_service.upsert_theme("42", ThemePatch(colors=full_colors, name="Custom"))
        theme = await user_service.reset_theme("42")

        assert theme.name == "My Theme"
        assert theme.colors == DEFAULT_THEME_COLORS
        assert user_repository.rows["42"]["colors"] == DEFAULT_THEME_COLORS
        assert (await user_service.get_theme("42")).name == "My Theme"

    @pytest.mark.asyncio
    async def test_reset_keeps_row_identity(self, user_service, user_repository):
        created = await user_service.get_theme("42")
        reset = await user_service.reset_theme("42")
        assert reset.id == created.id
        assert user_repository.insert_count == 1

    @pytest.mark.asyncio
    async def test_reset_is_idempotent(self, user_service):
        first = await user_service.reset_theme("42")
        second = await user_service.reset_theme("42")
        assert first.model_dump() == second.model_dump()

    @pytest.mark.asyncio
    async def test_site_reset_clears_logo(self, site_service, asset_store):
        await site_service.set_logo("global", "/uploads/logo-1.png")
        theme = await site_service.reset_theme("global")

        assert theme.logo is None
        assert asset_store.deleted == ["/uploads/logo-1.png"]
        assert "logo-url" not in await site_service.render_css("global")


class TestRenderCss:
    @pytest.mark.asyncio
    async def test_missing_theme_is_not_found(self, user_service, user_repository):
        with pytest.raises(ThemeNotFoundError):
            await user_service.render_css("42")
        assert user_repository.insert_count == 0

    @pytest.mark.asyncio
    async def test_css_is_cached(self, user_service, user_repository):
        await user_service.get_theme("42")
        first = await user_service.render_css("42")
        second = await user_service.render_css("42")

        assert first == second
        assert user_repository.find_count == 1

    @pytest.mark.asyncio
    async def test_disabled_shadows(self, user_service):
        await user_service.upsert_theme("42", ThemePatch(shadows={"enabled": False}))
        css = await user_service.render_css("42")

        for level in ("-2xs", "-xs", "-sm", "", "-md", "-lg", "-xl", "-2xl"):
            assert f"  --shadow{level}: none;" in css

    @pytest.mark.asyncio
    async def test_shadow_multipliers(self, user_service):
        await user_service.upsert_theme("42", ThemePatch(shadows={"enabled": True, "opacity": 0.1}))
        css = await user_service.render_css("42")

        assert "  --shadow-2xs: 0 1px 2px 0px hsl(0 0% 0% / 0.06);" in css
        assert "  --shadow-2xl: 0 1px 2px 0px hsl(0 0% 0% / 0.26);" in css

    @pytest.mark.asyncio
    async def test_site_css_has_comment(self, site_service):
        await site_service.upsert_theme("global", ThemePatch(name="Corporate"))
        css = await site_service.render_css("global")
        assert "  /* Theme: Corporate */" in css


class TestSiteLogo:
    """Test logo handling on the site theme."""

    @pytest.mark.asyncio
    async def test_set_logo_on_missing_theme_creates_it(self, site_service, site_repository):
        theme = await site_service.set_logo("global", "/uploads/logo-1.png")

        assert theme.logo == "/uploads/logo-1.png"
        assert theme.name == "My Theme"
        assert site_repository.insert_count == 1

    @pytest.mark.asyncio
    async def test_replacing_logo_deletes_previous(self, site_service, asset_store):
        await site_service.set_logo("global", "/uploads/logo-1.png")
        theme = await site_service.set_logo("global", "/uploads/logo-2.png")

        assert theme.logo == "/uploads/logo-2.png"
        assert asset_store.deleted == ["/uploads/logo-1.png"]

    @pytest.mark.asyncio
    async def test_logo_appears_in_css(self, site_service):
        await site_service.get_theme("global")
        await site_service.render_css("global")
        await site_service.set_logo("global", "/uploads/logo-1.png")

        css = await site_service.render_css("global")
        assert "  --logo-url: url('/uploads/logo-1.png');" in css

    @pytest.mark.asyncio
    async def test_logo_keeps_other_fields(self, site_service):
        await site_service.upsert_theme("global", ThemePatch(name="Brand"))
        theme = await site_service.set_logo("global", "/uploads/logo-1.png")
        assert theme.name == "Brand"

    @pytest.mark.asyncio
    async def test_user_themes_have_no_logo(self, user_service):
        with pytest.raises(ThemeServiceError):
            await user_service.set_logo("42", "/uploads/logo-1.png")


class TestStorageFailure:
    @pytest.mark.asyncio
    async def test_read_failure_is_wrapped(self, cache):
        service = ThemeService(BrokenRepository(), cache)
        with pytest.raises(ThemeStorageError) as exc_info:
            await service.get_theme("42")
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_write_failure_is_not_retried(self, cache):
        repository = BrokenRepository()
        service = ThemeService(repository, cache)

        with pytest.raises(ThemeStorageError):
            await service.upsert_theme("42", ThemePatch(name="x"))
        assert repository.calls == ["find_one"]
        assert len(cache) == 0
