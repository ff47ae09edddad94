"""
설정 트리 조작 유틸리티

- jq 스타일 경로(.a.b)로 중첩 값 설정
- 깊은 병합 (나중 소스 우선)
- 비교용 일반 파이썬 값 변환
"""

import copy
from typing import Any

from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.scalarbool import ScalarBoolean

from .errors import ConfigPathError


def normalize_field_path(field_path: str) -> str:
    """jq 스타일 경로의 선행 점 하나 제거 (.a.b → a.b)"""
    return field_path[1:] if field_path.startswith(".") else field_path


def split_field_path(field_path: str) -> list[str]:
    """점 구분 경로를 세그먼트로 분리 (빈 세그먼트는 ConfigPathError)"""
    segments = field_path.split(".")
    if not field_path or any(segment == "" for segment in segments):
        raise ConfigPathError(f"잘못된 필드 경로: {field_path!r}")
    return segments


def _list_index(node: list, segment: str, field_path: str) -> int:
    if not segment.isdigit():
        raise ConfigPathError(
            f"리스트 인덱스는 숫자여야 합니다: {segment!r} (경로: {field_path})"
        )
    index = int(segment)
    if index >= len(node):
        raise ConfigPathError(
            f"리스트 인덱스 범위 초과: {index} >= {len(node)} (경로: {field_path})"
        )
    return index


def set_path(tree: Any, field_path: str, value: Any) -> None:
    """점 구분 경로로 중첩 값 설정

    중간 매핑이 없으면 생성합니다. 숫자 세그먼트는 기존 리스트의 인덱스로
    해석합니다.

    Args:
        tree: 수정할 트리 (제자리 변경)
        field_path: 점 구분 경로 (선행 점 없음, 예: "server.port")
        value: 설정할 값

    Raises:
        ConfigPathError: 빈 세그먼트, 스칼라 통과, 인덱스 범위 초과
    """
    segments = split_field_path(field_path)
    node = tree

    for depth, segment in enumerate(segments):
        is_last = depth == len(segments) - 1

        if isinstance(node, dict):
            if is_last:
                node[segment] = value
                return
            child = node.get(segment)
            if child is None:
                # 라운드트립 트리에서는 주석을 달 수 있는 타입 유지
                child = CommentedMap() if isinstance(node, CommentedMap) else {}
                node[segment] = child
            node = child
        elif isinstance(node, list):
            index = _list_index(node, segment, field_path)
            if is_last:
                node[index] = value
                return
            node = node[index]
        else:
            walked = ".".join(segments[:depth]) or "<root>"
            raise ConfigPathError(
                f"스칼라 값을 통과할 수 없습니다: {walked} (경로: {field_path})"
            )


def _merge_into(base: Any, override: Any, overwrite: bool = True) -> Any:
    if not (isinstance(base, dict) and isinstance(override, dict)):
        return copy.deepcopy(override) if overwrite else base

    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            base[key] = _merge_into(base[key], value, overwrite)
        elif overwrite or key not in base:
            base[key] = copy.deepcopy(value)
    return base


def deep_merge(*sources: Any, overwrite: bool = True) -> Any:
    """여러 트리를 순서대로 깊은 병합 (새 객체 반환, 입력 불변)

    규칙:
    - 매핑은 재귀적으로 키 합집합
    - 리스트와 스칼라는 나중 소스가 대체 (overwrite=False면 없는 키만 채움)
    - 첫 소스의 주석과 키 순서가 유지됨

    Args:
        sources: 병합할 트리들 (첫 번째가 기준)
        overwrite: False면 충돌 시 앞선 소스의 값 유지

    Returns:
        병합된 트리 (소스가 없으면 빈 CommentedMap)
    """
    if not sources:
        return CommentedMap()

    result = copy.deepcopy(sources[0])
    for source in sources[1:]:
        result = _merge_into(result, source, overwrite)
    return result


def to_plain(node: Any) -> Any:
    """라운드트립 트리를 일반 dict/list/스칼라로 변환

    주석과 스타일 정보를 버리므로 값 비교에 사용합니다.
    """
    if isinstance(node, dict):
        return {to_plain(key): to_plain(value) for key, value in node.items()}
    if isinstance(node, list):
        return [to_plain(item) for item in node]
    if isinstance(node, bool):
        return node
    if isinstance(node, ScalarBoolean):
        return bool(node)
    if isinstance(node, int):
        return int(node)
    if isinstance(node, float):
        return float(node)
    if isinstance(node, str):
        return str(node)
    return node
