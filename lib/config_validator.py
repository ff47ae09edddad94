"""
설정 트리 검증기

ConfigStore.validate()에 넘길 수 있는 검증기 구현입니다.
스키마 자체는 Pydantic 모델로 정의하고, 이 모듈은 결과를 수집만 합니다.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from .tree_utils import to_plain


@dataclass
class ValidationReport:
    """설정 검증 결과

    Attributes:
        is_valid: 검증 통과 여부 (에러 없음)
        errors: "경로: 메시지" 형식의 에러 목록
        warnings: 모델에 정의되지 않은 키 등 (차단하지 않음)
        model: 검증에 성공한 경우 생성된 모델 인스턴스
    """

    is_valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    model: BaseModel | None = None

    def get_errors(self) -> list[str]:
        return list(self.errors)


class ModelValidator:
    """Pydantic 모델 기반 설정 검증기

    사용 예시:
        ```python
        class ServerConfig(BaseModel):
            host: str
            port: int = 8080

        store = ConfigStore("config/server.yaml")
        await store.get()
        errors = store.validate(ModelValidator(ServerConfig))
        ```
    """

    def __init__(self, model: type[BaseModel]) -> None:
        """
        Args:
            model: 설정 스키마 Pydantic 모델 클래스
        """
        self.model = model
        self._config: Any = None

    def set_config(self, data: Any) -> None:
        """검증할 설정 트리 주입"""
        self._config = data

    def validate(self) -> ValidationReport:
        """주입된 설정을 모델로 검증

        Returns:
            ValidationReport: 검증 결과
        """
        report = ValidationReport()

        if self._config is None:
            report.is_valid = False
            report.errors.append("검증할 설정이 없습니다 (먼저 get()으로 로드하세요)")
            return report

        plain = to_plain(self._config)

        try:
            report.model = self.model.model_validate(plain)
        except ValidationError as e:
            report.is_valid = False
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"]) or "<root>"
                report.errors.append(f"{location}: {error['msg']}")
            return report

        if isinstance(plain, dict):
            known = set(self.model.model_fields)
            aliases = {
                info.alias for info in self.model.model_fields.values() if info.alias
            }
            for key in plain:
                if key not in known and key not in aliases:
                    report.warnings.append(f"스키마에 없는 키: {key}")

        return report
