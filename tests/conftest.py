# -*- coding: utf-8 -*-

from __future__ import annotations

from typing import List, Optional

import pytest


SAMPLE_CSV = "key,en,fr\nhello,Hello,Bonjour\nbye,Bye,\n"


class FakeResponse:
    def __init__(self, content: bytes, status_code: int = 200) -> None:
        self.content = content
        self.status_code = status_code


class FakeSession:
    def __init__(self, response: Optional[FakeResponse] = None, error: Optional[Exception] = None) -> None:
        self.response = response
        self.error = error
        self.calls: List[dict] = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def sample_csv() -> str:
    return SAMPLE_CSV


@pytest.fixture
def make_session():
    def factory(body=b"", status_code=200, error=None) -> FakeSession:
        if isinstance(body, str):
            body = body.encode("utf-8")
        return FakeSession(FakeResponse(body, status_code), error)

    return factory
