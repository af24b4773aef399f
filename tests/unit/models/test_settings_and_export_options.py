"""导出选项与应用设置单元测试."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from caption_art.models.app_settings import Settings, load_settings
from caption_art.models.export_options import ExportFormat, ExportOptions, ExportResult
from caption_art.utils.constants import EXPORT_DIR, PRESETS_FILE


class TestExportOptions:
    """测试导出选项."""

    def test_defaults(self):
        """测试默认值."""
        options = ExportOptions()

        assert options.format == ExportFormat.PNG
        assert options.quality == pytest.approx(0.92)
        assert options.wants_watermark is False

    @pytest.mark.parametrize("value", ["jpg", "JPEG", "Jpeg"])
    def test_jpeg_aliases(self, value):
        """测试 jpg 别名和大小写."""
        assert ExportOptions(format=value).format == ExportFormat.JPEG

    @pytest.mark.parametrize("quality", [0, 1.5, -0.1])
    def test_quality_range(self, quality):
        """测试质量范围 (0, 1]."""
        with pytest.raises(ValidationError):
            ExportOptions(quality=quality)

    def test_watermark_needs_text(self):
        """测试水印需要文字."""
        assert ExportOptions(watermark=True).wants_watermark is False
        assert ExportOptions(watermark=True, watermark_text="demo").wants_watermark is True

    def test_result_size(self):
        """测试导出结果大小."""
        result = ExportResult(filename="a.png", data=b"12345", format="png", watermarked=False, method="blob")

        assert result.size == 5
        assert result.path is None


class TestSettings:
    """测试应用设置."""

    def test_defaults(self, monkeypatch):
        """测试默认值."""
        monkeypatch.delenv("CAPTION_ART_MAX_DIMENSION", raising=False)
        settings = Settings(_env_file=None)

        assert settings.max_dimension == 1080
        assert settings.auto_place_grid_size == 50
        assert settings.output_dir == EXPORT_DIR
        assert settings.preset_store == PRESETS_FILE

    def test_env_prefix(self, monkeypatch):
        """测试环境变量前缀."""
        monkeypatch.setenv("CAPTION_ART_MAX_DIMENSION", "720")
        monkeypatch.setenv("CAPTION_ART_EXPORT_FORMAT", "jpeg")

        settings = Settings(_env_file=None)

        assert settings.max_dimension == 720
        assert settings.export_format == ExportFormat.JPEG

    def test_log_level_normalized(self):
        """测试日志级别转大写."""
        assert load_settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level(self):
        """测试无效日志级别."""
        with pytest.raises(ValidationError):
            load_settings(log_level="chatty")

    def test_custom_paths(self, temp_dir: Path):
        """测试自定义路径."""
        settings = load_settings(export_dir=temp_dir, presets_path=temp_dir / "p.json")

        assert settings.output_dir == temp_dir
        assert settings.preset_store == temp_dir / "p.json"
