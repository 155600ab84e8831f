"""
Exceptions raised by the rate catalog services.

Messages are user facing; the structured attributes let views render
context (and suggestions) without parsing the message.
"""
from __future__ import annotations

from datetime import datetime

from .utils import format_tonnage


class RateEngineError(Exception):
    """Base exception for rate catalog errors"""
    code = "RATE_ERROR"


class RateNotFound(RateEngineError):
    """No active rate master exists for (center, tonnage)"""
    code = "RATE_NOT_FOUND"

    def __init__(self, center_name: str, tonnage):
        self.center_name = center_name
        self.tonnage = tonnage
        super().__init__(f"{center_name} ({format_tonnage(tonnage)}톤) 요금 정보를 찾을 수 없습니다")


class NoValidRatesForDate(RateEngineError):
    """The master exists but none of its lines is valid on the requested date"""
    code = "NO_VALID_RATES_FOR_DATE"

    def __init__(self, center_name: str, tonnage, as_of: datetime):
        self.center_name = center_name
        self.tonnage = tonnage
        self.as_of = as_of
        super().__init__(
            f"{center_name} ({format_tonnage(tonnage)}톤) 요금 정보가 해당 날짜({as_of.date().isoformat()})에 유효하지 않습니다"
        )


class DuplicateRate(RateEngineError):
    """A rate master already exists for (center, tonnage)"""
    code = "CONFLICT"

    def __init__(self, center_name: str, tonnage):
        self.center_name = center_name
        self.tonnage = tonnage
        super().__init__(f"{center_name} ({format_tonnage(tonnage)}톤) 요금 정보가 이미 존재합니다")


class RateMasterNotFound(RateEngineError):
    code = "NOT_FOUND"

    def __init__(self, rate_id):
        self.rate_id = rate_id
        super().__init__(f"ID {rate_id}에 해당하는 요금 정보를 찾을 수 없습니다")
