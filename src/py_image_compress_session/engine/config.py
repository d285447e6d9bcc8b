"""选项解析模块。

统一的压缩选项构建逻辑：会话默认值 + 调用方覆盖，逐字段浅合并并集成参数验证。
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..config import get_config
from ..exceptions import ValidationError as CustomValidationError
from ..models.compression_options import CompressionOptions, OptionsOverride
from ..utils.message_formatter import MessageFormatter


logger = logging.getLogger(__name__)

OverrideLike = OptionsOverride | Mapping[str, Any] | None

# 引擎接口的驼峰字段名
_CAMEL_CASE_FIELDS = {
    "maxSizeMB": "max_size_mb",
    "maxWidthOrHeight": "max_width_or_height",
    "fileType": "file_type",
    "useWebWorker": "use_web_worker",
}


class OptionsResolver:
    """压缩选项解析器

    提供 resolve(base, override) -> effective 的显式两层合并。
    覆盖层中设置了值的字段逐个生效，未设置的字段沿用基础层。
    """

    def default_options(self) -> CompressionOptions:
        """由全局配置构建基础默认选项"""
        return self._build(get_config().session.as_options())

    def to_override(self, override: OverrideLike) -> OptionsOverride:
        """把字典（蛇形或驼峰字段名）标准化为 OptionsOverride

        Raises:
            CustomValidationError: 字段未知或取值非法
        """
        if override is None:
            return OptionsOverride()
        if isinstance(override, OptionsOverride):
            return override

        fields: dict[str, Any] = {}
        for key, value in override.items():
            field = _CAMEL_CASE_FIELDS.get(key, key)
            if field not in OptionsOverride.model_fields:
                raise CustomValidationError(f"未知的压缩选项: {key}")
            fields[field] = value

        try:
            return OptionsOverride(**fields)
        except PydanticValidationError as e:
            raise CustomValidationError(self._format_validation_error(e)) from e

    def resolve(
        self,
        base: CompressionOptions | None = None,
        override: OverrideLike = None,
    ) -> CompressionOptions:
        """合并基础选项与覆盖选项

        Args:
            base: 基础选项，None 时使用全局默认值
            override: 覆盖选项

        Returns:
            CompressionOptions: 所有字段都有值的有效选项

        Raises:
            CustomValidationError: 参数验证失败
        """
        base = base or self.default_options()
        overrides = self.to_override(override).get_overrides()
        if not overrides:
            return base

        merged = {**base.model_dump(), **overrides}
        logger.debug(f"合并压缩选项: {overrides}")
        return self._build(merged)

    def _build(self, fields: dict[str, Any]) -> CompressionOptions:
        try:
            return CompressionOptions(**fields)
        except PydanticValidationError as e:
            raise CustomValidationError(self._format_validation_error(e)) from e

    def _format_validation_error(self, error: PydanticValidationError) -> str:
        """格式化验证错误"""
        messages = []
        for err in error.errors():
            field = ".".join(str(loc) for loc in err["loc"])
            messages.append(
                MessageFormatter.validation_error(field or "options", err.get("input"), err["msg"])
            )
        return "; ".join(messages)


# 全局选项解析器实例
_default_resolver = OptionsResolver()


def resolve_options(
    base: CompressionOptions | None = None, override: OverrideLike = None
) -> CompressionOptions:
    """便捷的选项合并函数

    使用全局解析器实例合并选项。
    """
    return _default_resolver.resolve(base, override)
