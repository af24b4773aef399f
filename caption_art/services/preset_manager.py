"""文字效果预设管理服务.

把命名的文字效果保存在本地 JSON 文件中。

Features:
    - 保存（同名覆盖）、加载、删除预设
    - 图案图片以 PNG data URL 形式存储
    - 存储文件损坏时记录日志并视为空
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field, ValidationError

from caption_art.models.text_effects import (
    Color,
    GradientEffect,
    OutlineEffect,
    PatternEffect,
    TextEffects,
)
from caption_art.utils.constants import PRESETS_FILE
from caption_art.utils.exceptions import PresetError
from caption_art.utils.image_utils import data_url_to_image, image_to_data_url
from caption_art.utils.logger import setup_logger

logger = setup_logger(__name__)


class PresetPattern(BaseModel):
    """可序列化的图案效果."""

    enabled: bool = False
    image_data_url: Optional[str] = None
    scale: float = 1.0


class PresetData(BaseModel):
    """可序列化的预设."""

    name: str
    fill_color: Color = "#000000"
    outline: OutlineEffect = Field(default_factory=OutlineEffect)
    gradient: GradientEffect = Field(default_factory=GradientEffect)
    pattern: PresetPattern = Field(default_factory=PresetPattern)

    @classmethod
    def from_effects(cls, name: str, effects: TextEffects) -> "PresetData":
        """从文字效果创建预设."""
        image = effects.pattern.image
        return cls(
            name=name,
            fill_color=effects.fill_color,
            outline=effects.outline.model_copy(deep=True),
            gradient=effects.gradient.model_copy(deep=True),
            pattern=PresetPattern(
                enabled=effects.pattern.enabled,
                image_data_url=image_to_data_url(image) if image is not None else None,
                scale=effects.pattern.scale,
            ),
        )

    def to_effects(self) -> TextEffects:
        """转换为文字效果，图案图片解码失败时置空."""
        image = None
        if self.pattern.image_data_url:
            try:
                image = data_url_to_image(self.pattern.image_data_url)
            except (ValueError, OSError) as e:
                logger.error(f"预设 '{self.name}' 的图案图片解码失败: {e}")

        return TextEffects(
            fill_color=self.fill_color,
            outline=self.outline.model_copy(deep=True),
            gradient=self.gradient.model_copy(deep=True),
            pattern=PatternEffect(
                enabled=self.pattern.enabled,
                image=image,
                scale=self.pattern.scale,
            ),
        )


class PresetManager:
    """预设管理器.

    Example:
        >>> manager = PresetManager("presets.json")
        >>> manager.save_preset("红色描边", effects)
        >>> manager.get_preset_names()
        ['红色描边']
        >>> loaded = manager.load_preset("红色描边")
    """

    def __init__(self, store_path: Optional[Union[str, Path]] = None) -> None:
        """初始化预设管理器.

        Args:
            store_path: JSON 存储文件路径，默认为用户目录下的预设文件
        """
        self._store_path = Path(store_path) if store_path else PRESETS_FILE

    @property
    def store_path(self) -> Path:
        """存储文件路径."""
        return self._store_path

    def _write(self, presets: list[PresetData]) -> None:
        """写入存储文件."""
        try:
            self._store_path.parent.mkdir(parents=True, exist_ok=True)
            payload = [preset.model_dump(mode="json") for preset in presets]
            with open(self._store_path, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.error(f"保存预设失败: {e}")
            raise PresetError(f"保存预设失败: {e}") from e

    # ========================
    # 公共方法
    # ========================

    def load_all_presets(self) -> list[PresetData]:
        """加载所有预设，存储文件不存在或损坏时返回空列表."""
        if not self._store_path.exists():
            return []

        try:
            with open(self._store_path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"加载预设失败: {self._store_path}, 错误: {e}")
            return []

        if not isinstance(raw, list):
            logger.error(f"预设文件格式无效: {self._store_path}")
            return []

        presets = []
        for item in raw:
            try:
                presets.append(PresetData.model_validate(item))
            except ValidationError as e:
                logger.warning(f"跳过无效预设: {e}")
        return presets

    def save_preset(self, name: str, effects: TextEffects) -> None:
        """保存预设，同名预设会被覆盖.

        Args:
            name: 预设名称（首尾空白会被去除）
            effects: 文字效果

        Raises:
            PresetError: 名称为空或写入失败
        """
        if not name or not name.strip():
            raise PresetError("预设名称不能为空")

        data = PresetData.from_effects(name.strip(), effects)
        presets = self.load_all_presets()
        for index, preset in enumerate(presets):
            if preset.name == data.name:
                presets[index] = data
                break
        else:
            presets.append(data)

        self._write(presets)
        logger.info(f"预设已保存: {data.name}")

    def load_preset(self, name: str) -> Optional[TextEffects]:
        """加载预设，不存在时返回 None."""
        for preset in self.load_all_presets():
            if preset.name == name:
                return preset.to_effects()
        return None

    def get_preset_names(self) -> list[str]:
        """获取所有预设名称（保存顺序）."""
        return [preset.name for preset in self.load_all_presets()]

    def delete_preset(self, name: str) -> bool:
        """删除预设.

        Returns:
            预设是否存在
        """
        presets = self.load_all_presets()
        remaining = [preset for preset in presets if preset.name != name]
        self._write(remaining)
        if len(remaining) == len(presets):
            return False
        logger.info(f"预设已删除: {name}")
        return True

    def preset_exists(self, name: str) -> bool:
        return any(preset.name == name for preset in self.load_all_presets())

    def clear_all_presets(self) -> None:
        """删除所有预设."""
        self._store_path.unlink(missing_ok=True)
        logger.info("所有预设已清除")
