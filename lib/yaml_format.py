"""
주석 보존 YAML 파서/직렬화기

ruamel.yaml 라운드트립 모드를 사용하여 사람이 편집하는 설정 파일의
주석, 키 순서, 따옴표 스타일을 그대로 유지합니다.
YAML 1.2는 JSON 상위 집합이므로 `{ ... }` 형태의 JSON/hjson 스타일 문서도
그대로 읽고 쓸 수 있습니다.

쓰기 옵션:
    quotes: "min" (원본 스타일 유지) | "strings" (문자열 값은 항상 큰따옴표)
    space: 들여쓰기 폭 (정수, YAML은 탭 들여쓰기 불가)
    braces_same_line: True면 flow 컬렉션 `{ ... }`을 줄바꿈하지 않음
    width: 줄바꿈 기준 폭 (braces_same_line=False일 때만 적용)
    explicit_start: 문서 시작 `---` 출력 여부
"""

import copy
import io
from dataclasses import dataclass, fields
from typing import Any, Mapping

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError
from ruamel.yaml.scalarstring import DoubleQuotedScalarString, ScalarString

from .errors import ConfigParseError, ConfigSerializeError

# 항상 적용되는 사내 포맷 (호출자 옵션보다 우선)
HOUSE_WRITE_OPTIONS: dict[str, Any] = {
    "quotes": "strings",
    "space": 4,
    "braces_same_line": True,
}

QUOTE_MODES = ("min", "strings")

# flow 컬렉션을 사실상 한 줄로 유지하는 폭
_NO_WRAP_WIDTH = 4096


@dataclass(frozen=True)
class WriteOptions:
    """직렬화 옵션"""

    quotes: str = "min"
    space: int = 2
    braces_same_line: bool = False
    width: int = 80
    explicit_start: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> "WriteOptions":
        """dict 옵션을 검증하여 WriteOptions로 변환

        Raises:
            ConfigSerializeError: 알 수 없는 키 또는 잘못된 값
        """
        options = dict(options or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise ConfigSerializeError(f"알 수 없는 쓰기 옵션: {unknown}")

        result = cls(**options)

        if result.quotes not in QUOTE_MODES:
            raise ConfigSerializeError(
                f"잘못된 quotes 값: {result.quotes!r} (허용: {QUOTE_MODES})"
            )
        if isinstance(result.space, bool) or not isinstance(result.space, int):
            raise ConfigSerializeError(
                f"space는 정수여야 합니다 (YAML은 탭 들여쓰기 불가): {result.space!r}"
            )
        if result.space < 2:
            raise ConfigSerializeError(f"space가 너무 작음: {result.space}")
        return result


def with_house_options(options: Mapping[str, Any] | None) -> dict[str, Any]:
    """호출자 옵션 위에 사내 포맷을 덮어쓴 새 dict 반환 (원본 불변)"""
    return {**(options or {}), **HOUSE_WRITE_OPTIONS}


def _make_yaml() -> YAML:
    yaml = YAML(typ="rt")
    yaml.preserve_quotes = True
    return yaml


def parse(text: str) -> Any:
    """설정 텍스트 파싱 (주석 보존)

    빈 문서는 빈 CommentedMap으로 취급합니다.

    Raises:
        ConfigParseError: 문법 오류
    """
    try:
        data = _make_yaml().load(text)
    except YAMLError as e:
        raise ConfigParseError(f"설정 파일 문법 오류: {e}") from e

    if data is None:
        return CommentedMap()
    return data


def _quote_strings(node: Any) -> Any:
    """문자열 값을 큰따옴표 스타일로 변환 (키는 그대로)

    이미 스타일이 지정된 문자열(리터럴 블록, 작은따옴표 등)은 유지합니다.
    """
    if isinstance(node, dict):
        for key in list(node.keys()):
            node[key] = _quote_strings(node[key])
        return node
    if isinstance(node, list):
        for index, item in enumerate(node):
            node[index] = _quote_strings(item)
        return node
    if isinstance(node, str) and not isinstance(node, ScalarString):
        return DoubleQuotedScalarString(node)
    return node


def stringify(data: Any, options: Mapping[str, Any] | None = None) -> str:
    """설정 트리를 텍스트로 직렬화

    Args:
        data: parse()가 반환한 트리 또는 일반 dict/list
        options: 쓰기 옵션 (WriteOptions 필드명)

    Returns:
        직렬화된 텍스트

    Raises:
        ConfigSerializeError: 표현할 수 없는 값 또는 잘못된 옵션
    """
    opts = WriteOptions.from_mapping(options)

    yaml = _make_yaml()
    yaml.indent(mapping=opts.space, sequence=opts.space, offset=opts.space - 2)
    yaml.width = _NO_WRAP_WIDTH if opts.braces_same_line else opts.width
    yaml.explicit_start = opts.explicit_start

    try:
        if opts.quotes == "strings":
            data = _quote_strings(copy.deepcopy(data))
        buffer = io.StringIO()
        yaml.dump(data, buffer)
    except (YAMLError, TypeError) as e:
        raise ConfigSerializeError(f"설정 직렬화 실패: {e}") from e

    return buffer.getvalue()
