import pytest

from slicestore import DevToolsRecorder, ErrorHandler


@pytest.fixture
def reported():
    """錯誤處理器收到的錯誤"""
    return []


@pytest.fixture
def error_handler(reported):
    handler = ErrorHandler(log_to_console=False)
    handler.register_handler(reported.append)
    return handler


@pytest.fixture
def recorder():
    return DevToolsRecorder()
