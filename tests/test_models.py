"""Tests for watermark models and enums."""

import pytest
from pydantic import ValidationError

from watermarker.errors import InvalidArgument
from watermarker.models import (
    Position,
    ResourceRef,
    ResourceType,
    ResourceWatermarkAssignment,
    SettingType,
    WatermarkSet,
    WatermarkSetting,
)


class TestResourceType:
    """Resource type parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("item", ResourceType.ITEM),
            ("items", ResourceType.ITEM),
            ("item_set", ResourceType.ITEM_SET),
            ("item-set", ResourceType.ITEM_SET),
            ("item_sets", ResourceType.ITEM_SET),
            ("itemSet", ResourceType.ITEM_SET),
            ("media", ResourceType.MEDIA),
            (ResourceType.MEDIA, ResourceType.MEDIA),
        ],
    )
    def test_parse_accepts_aliases(self, raw, expected):
        assert ResourceType.parse(raw) is expected

    @pytest.mark.parametrize("raw", ["site", "", "ITEM", None, 3])
    def test_parse_rejects_unknown(self, raw):
        with pytest.raises(InvalidArgument):
            ResourceType.parse(raw)

    def test_ref_of_normalises(self):
        ref = ResourceRef.of("item-set", "12")
        assert ref == ResourceRef(ResourceType.ITEM_SET, 12)
        assert str(ref) == "item_set#12"

    def test_ref_of_rejects_bad_id(self):
        with pytest.raises(InvalidArgument):
            ResourceRef.of("item", "twelve")


class TestWatermarkSetting:
    """Opacity bounds and enum coercion."""

    @pytest.mark.parametrize("opacity", [0.0, 0.35, 1.0])
    def test_opacity_in_range(self, opacity):
        setting = WatermarkSetting(set_id=1, opacity=opacity, image_ref="logo.png")
        assert setting.opacity == opacity

    @pytest.mark.parametrize("opacity", [1.2, -0.1])
    def test_opacity_out_of_range(self, opacity):
        with pytest.raises(ValidationError):
            WatermarkSetting(set_id=1, opacity=opacity, image_ref="logo.png")

    def test_string_enums(self):
        setting = WatermarkSetting(set_id=1, opacity=0.5, image_ref="logo.png", type="portrait", position="bottom-full")
        assert setting.type is SettingType.PORTRAIT
        assert setting.position is Position.BOTTOM_FULL


class TestWatermarkSet:
    """Set validation and setting selection."""

    def _setting(self, setting_id, setting_type):
        return WatermarkSetting(id=setting_id, set_id=1, type=setting_type, opacity=1.0, image_ref=f"{setting_id}.png")

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            WatermarkSet(name="   ")
        assert "must have a name" in str(exc_info.value)

    def test_exact_orientation_wins(self):
        watermark_set = WatermarkSet(
            name="Holiday",
            settings=[self._setting(1, "all"), self._setting(2, "portrait"), self._setting(3, "portrait")],
        )
        assert watermark_set.setting_for(SettingType.PORTRAIT).id == 2

    def test_all_is_fallback(self):
        watermark_set = WatermarkSet(
            name="Holiday",
            settings=[self._setting(1, "landscape"), self._setting(2, "all")],
        )
        assert watermark_set.setting_for(SettingType.SQUARE).id == 2

    def test_first_setting_is_last_resort(self):
        watermark_set = WatermarkSet(
            name="Holiday",
            settings=[self._setting(1, "landscape"), self._setting(2, "portrait")],
        )
        assert watermark_set.setting_for(SettingType.SQUARE).id == 1

    def test_no_settings(self):
        assert WatermarkSet(name="Empty").setting_for(SettingType.LANDSCAPE) is None


class TestAssignment:
    def test_set_and_none_conflict(self):
        with pytest.raises(ValidationError) as exc_info:
            ResourceWatermarkAssignment(
                resource_type="item", resource_id=1, watermark_set_id=4, explicitly_no_watermark=True
            )
        assert "Cannot have both" in str(exc_info.value)

    def test_ref(self):
        assignment = ResourceWatermarkAssignment(resource_type="media", resource_id=7, explicitly_no_watermark=True)
        assert assignment.ref == ResourceRef(ResourceType.MEDIA, 7)
