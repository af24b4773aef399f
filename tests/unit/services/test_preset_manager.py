"""预设管理服务单元测试."""

import json
from pathlib import Path

import pytest
from PIL import Image

from caption_art.models.text_effects import (
    ColorStop,
    GradientEffect,
    GradientType,
    OutlineEffect,
    PatternEffect,
    TextEffects,
)
from caption_art.services.preset_manager import PresetData, PresetManager
from caption_art.utils.exceptions import PresetError


@pytest.fixture
def manager(temp_dir: Path) -> PresetManager:
    """使用临时文件的预设管理器."""
    return PresetManager(temp_dir / "presets.json")


@pytest.fixture
def rich_effects() -> TextEffects:
    """启用全部效果的配置."""
    return TextEffects(
        fill_color=(255, 0, 0),
        outline=OutlineEffect(enabled=True, width=4, color="#00ff00"),
        gradient=GradientEffect(
            enabled=True,
            type=GradientType.RADIAL,
            color_stops=[ColorStop(color="#fff", position=0), ColorStop(color="#000", position=1)],
            angle=45,
        ),
        pattern=PatternEffect(enabled=True, image=Image.new("RGBA", (4, 4), (1, 2, 3, 255)), scale=1.5),
    )


# ===================
# 保存与加载测试
# ===================
class TestSaveAndLoad:
    """测试保存与加载."""

    def test_round_trip(self, manager, rich_effects):
        """测试保存后加载得到等价效果."""
        manager.save_preset("全部", rich_effects)

        loaded = manager.load_preset("全部")

        assert loaded.fill_color == (255, 0, 0)
        assert loaded.outline == rich_effects.outline
        assert loaded.gradient == rich_effects.gradient
        assert loaded.pattern.scale == 1.5
        assert loaded.pattern.image.tobytes() == rich_effects.pattern.image.tobytes()
        assert loaded.cache_key() == rich_effects.cache_key()

    def test_store_is_json_list(self, manager, rich_effects):
        """测试存储格式为 JSON 列表."""
        manager.save_preset("全部", rich_effects)

        raw = json.loads(manager.store_path.read_text(encoding="utf-8"))

        assert isinstance(raw, list)
        assert raw[0]["name"] == "全部"
        assert raw[0]["pattern"]["image_data_url"].startswith("data:image/png;base64,")

    def test_overwrite_same_name(self, manager):
        """测试同名覆盖并保持顺序."""
        manager.save_preset("a", TextEffects(fill_color="#111111"))
        manager.save_preset("b", TextEffects())
        manager.save_preset("a", TextEffects(fill_color="#222222"))

        assert manager.get_preset_names() == ["a", "b"]
        assert manager.load_preset("a").fill_color == "#222222"

    def test_name_is_stripped(self, manager):
        """测试名称去除首尾空白."""
        manager.save_preset("  标题  ", TextEffects())

        assert manager.preset_exists("标题")

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, manager, name):
        """测试空名称."""
        with pytest.raises(PresetError):
            manager.save_preset(name, TextEffects())

    def test_missing_preset(self, manager):
        """测试加载不存在的预设."""
        assert manager.load_preset("nope") is None

    def test_pattern_without_image(self, manager):
        """测试无图片的图案效果."""
        manager.save_preset("plain", TextEffects(pattern=PatternEffect(enabled=True)))

        loaded = manager.load_preset("plain")

        assert loaded.pattern.enabled is True
        assert loaded.pattern.image is None

    def test_corrupt_pattern_image(self):
        """测试图案图片损坏时置空."""
        data = PresetData(name="x", pattern={"enabled": True, "image_data_url": "data:image/png;base64,AAAA"})

        assert data.to_effects().pattern.image is None


# ===================
# 删除与容错测试
# ===================
class TestDeleteAndRecovery:
    """测试删除与损坏文件容错."""

    def test_delete(self, manager):
        """测试删除返回是否存在."""
        manager.save_preset("a", TextEffects())

        assert manager.delete_preset("a") is True
        assert manager.delete_preset("a") is False
        assert manager.get_preset_names() == []

    def test_clear_all(self, manager):
        """测试清除全部预设."""
        manager.save_preset("a", TextEffects())

        manager.clear_all_presets()
        manager.clear_all_presets()

        assert not manager.store_path.exists()
        assert manager.load_all_presets() == []

    def test_corrupt_json(self, manager):
        """测试损坏的 JSON 视为空."""
        manager.store_path.write_text("{not json", encoding="utf-8")

        assert manager.load_all_presets() == []

    def test_non_list_json(self, manager):
        """测试非列表 JSON 视为空."""
        manager.store_path.write_text('{"name": "a"}', encoding="utf-8")

        assert manager.get_preset_names() == []

    def test_invalid_entries_skipped(self, manager):
        """测试跳过无效条目."""
        manager.store_path.write_text(
            json.dumps([{"name": "ok"}, {"fill_color": "#fff"}, "junk"]),
            encoding="utf-8",
        )

        assert manager.get_preset_names() == ["ok"]

    def test_save_after_corruption(self, manager):
        """测试文件损坏后仍可保存."""
        manager.store_path.write_text("[", encoding="utf-8")

        manager.save_preset("new", TextEffects())

        assert manager.get_preset_names() == ["new"]

    def test_write_failure(self, temp_dir: Path):
        """测试写入失败抛出 PresetError."""
        blocker = temp_dir / "file"
        blocker.write_text("x")
        manager = PresetManager(blocker / "presets.json")

        with pytest.raises(PresetError):
            manager.save_preset("a", TextEffects())
