from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RecorderSettings(BaseSettings):
    """
    Settings shared by recorders created in a test session

    colorize: default for Recorder.colorize - whether failure output dims the response body
    request_timeout: timeout in seconds passed to the transport (None waits indefinitely)
    server_host: interface the in-process server binds to
    server_startup_timeout: seconds to wait for the in-process server to start
    server_log_level: uvicorn log level for the in-process server
    """

    model_config = SettingsConfigDict(extra="ignore")

    colorize: bool = Field(default=True, alias="RECORDER_COLORIZE")
    request_timeout: float | None = Field(default=None, alias="RECORDER_REQUEST_TIMEOUT")
    server_host: str = Field(default="127.0.0.1", alias="RECORDER_SERVER_HOST")
    server_startup_timeout: float = Field(default=10.0, alias="RECORDER_SERVER_STARTUP_TIMEOUT")
    server_log_level: str = Field(
        default="warning",
        alias="RECORDER_SERVER_LOG_LEVEL",
        pattern="^(critical|error|warning|info|debug|trace)$",
    )
