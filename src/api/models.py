"""Pydantic models for API requests and responses"""

import re
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

FILE_PATH_PATTERN = re.compile(r"^[a-zA-Z0-9._/-]+$")

ModelT = TypeVar("ModelT", bound=BaseModel)


class InputValidationError(ValueError):
    """Request body failed schema validation"""

    def __init__(self, messages: List[str]):
        self.messages = messages
        super().__init__(f"Validation error: {', '.join(messages)}")


class CamelModel(BaseModel):
    """Accepts and emits the camelCase keys the browser client uses"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProviderKeyFields(CamelModel):
    """Provider keys as sent by the client, unchecked"""
    openai: Optional[str] = None
    elevenlabs: Optional[str] = None
    serpapi: Optional[str] = None


class ApiKeys(ProviderKeyFields):
    """Provider keys supplied with a command"""

    @field_validator("openai")
    @classmethod
    def openai_key_prefix(cls, value: Optional[str]) -> Optional[str]:
        if value and not value.startswith("sk-"):
            raise PydanticCustomError("openai_key_prefix", "OpenAI API key must start with 'sk-'")
        return value


class CommandRequest(CamelModel):
    """Request to process a voice or text command"""
    command: str
    api_keys: ApiKeys

    @field_validator("command")
    @classmethod
    def command_length(cls, value: str) -> str:
        if len(value) < 1:
            raise PydanticCustomError("command_empty", "Command cannot be empty")
        if len(value) > 1000:
            raise PydanticCustomError("command_too_long", "Command too long")
        return value


class FileReadRequest(CamelModel):
    """Request to read a file"""
    file_path: str = Field(min_length=1, max_length=500)

    @field_validator("file_path")
    @classmethod
    def safe_characters(cls, value: str) -> str:
        if not FILE_PATH_PATTERN.match(value):
            raise PydanticCustomError("file_path_pattern", "File path contains invalid characters")
        return value


class ScriptRunRequest(CamelModel):
    """Request to run a script, gated by explicit confirmation"""
    script_path: str = Field(min_length=1, max_length=500)
    confirmed: bool


class SearchRequest(CamelModel):
    """Request to search the web"""
    query: str = ""
    api_key: Optional[str] = None


class KeyCheckRequest(CamelModel):
    """Request to verify provider keys, malformed keys are reported per provider"""
    api_keys: ProviderKeyFields = Field(default_factory=ProviderKeyFields)


class DebugKeyRequest(CamelModel):
    """Request to test a single OpenAI key"""
    test_key: Optional[str] = None


class ApiStatus(BaseModel):
    """Which providers were available for a command"""
    openai: bool
    elevenlabs: bool
    serpapi: bool


class CommandResponse(CamelModel):
    """Processed command"""
    response: str
    audio_url: str = ""
    tools_used: List[str]
    api_status: ApiStatus


class ProviderTestResult(BaseModel):
    """Outcome of checking one provider key"""
    status: str = "not_tested"  # success, warning, error, missing, not_tested
    message: str = ""


class KeyTestResults(BaseModel):
    """Per-provider key test outcomes"""
    openai: ProviderTestResult = Field(default_factory=ProviderTestResult)
    elevenlabs: ProviderTestResult = Field(default_factory=ProviderTestResult)
    serpapi: ProviderTestResult = Field(default_factory=ProviderTestResult)


class FileContent(CamelModel):
    """Simulated file read result"""
    path: str
    content: str
    type: str
    size: str
    last_modified: str


class ScriptConfirmation(CamelModel):
    """Prompt returned before a script is allowed to run"""
    requires_confirmation: bool = True
    message: str
    script_path: str


class ScriptExecution(CamelModel):
    """Simulated script execution transcript"""
    script_path: str
    output: str
    exit_code: int
    execution_time: str
    timestamp: str


class SearchResult(BaseModel):
    """Single search hit"""
    title: str
    snippet: str
    url: str


class SearchResults(BaseModel):
    """Search response"""
    query: str
    results: List[SearchResult]


def validate_input(model: Type[ModelT], data: Any) -> ModelT:
    """
    Validate a request body against a model

    Raises:
        InputValidationError: with every failing message joined
    """
    if not isinstance(data, dict):
        raise InputValidationError(["Request body must be a JSON object"])

    try:
        return model.model_validate(data)
    except ValidationError as e:
        messages = []
        for error in e.errors():
            location = ".".join(str(part) for part in error["loc"])
            if error["type"] == "missing":
                messages.append(f"{location} is required")
            else:
                messages.append(error["msg"])
        raise InputValidationError(messages) from e


def to_json(model: BaseModel) -> Dict[str, Any]:
    """Serialize a response model with its camelCase aliases"""
    return model.model_dump(by_alias=True)
