"""Capability interfaces for file reading, script execution and web search

Only stub implementations exist. They return canned payloads regardless of
input; a real integration implements the same interface and is passed to the
server in place of the stub.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable

from .models import FileContent, ScriptExecution, SearchResult, SearchResults

FILE_TYPES = {
    "pdf": "PDF Document",
    "txt": "Text File",
    "log": "Log File",
    "md": "Markdown File",
    "json": "JSON File",
}


def get_file_type(file_path: str) -> str:
    """Human readable file type from the extension"""
    extension = file_path.rsplit(".", 1)[-1].lower() if "." in file_path else ""
    return FILE_TYPES.get(extension, "Unknown File Type")


class FileReader(ABC):
    """Reads a file for the assistant"""

    @abstractmethod
    async def read(self, file_path: str) -> FileContent:
        pass


class ScriptRunner(ABC):
    """Executes an approved script"""

    @abstractmethod
    async def run(self, script_path: str) -> ScriptExecution:
        pass


class WebSearch(ABC):
    """Searches the web"""

    @abstractmethod
    async def search(self, query: str, api_key: str) -> SearchResults:
        pass


class StubFileReader(FileReader):
    """Simulated file read"""

    def __init__(self, now: Callable[[], datetime] = datetime.now):
        self._now = now

    async def read(self, file_path: str) -> FileContent:
        content = f"""This is simulated content from {file_path}.

In a real implementation, this would:
- Read actual files from your local filesystem
- Support various file formats (PDF, TXT, LOG, etc.)
- Parse and extract text content
- Handle file permissions and security

Example content that might be in your file:
- System logs and error messages
- Notes and documents
- Configuration files
- Data files

The file reading functionality would integrate with your local file system to provide real content."""

        return FileContent(
            path=file_path,
            content=content,
            type=get_file_type(file_path),
            size="2.4 KB",
            last_modified=self._now().isoformat(),
        )


class StubScriptRunner(ScriptRunner):
    """Simulated script execution"""

    def __init__(self, now: Callable[[], datetime] = datetime.now):
        self._now = now

    async def run(self, script_path: str) -> ScriptExecution:
        output = f"""Simulated execution of {script_path}:

✅ Script started successfully
📊 Running system diagnostics...
🔍 Checking system health...
💾 Memory usage: 68%
🖥️  CPU usage: 23%
🌐 Network status: Connected
🔒 Security status: All systems secure

✅ Script completed successfully

In a real implementation, this would:
- Execute actual scripts and commands
- Capture real output and errors
- Handle permissions and security
- Support various script types (Python, Bash, PowerShell, etc.)
- Provide real-time execution feedback"""

        return ScriptExecution(
            script_path=script_path,
            output=output,
            exit_code=0,
            execution_time="2.3s",
            timestamp=self._now().isoformat(),
        )


class StubWebSearch(WebSearch):
    """Simulated web search"""

    async def search(self, query: str, api_key: str) -> SearchResults:
        return SearchResults(
            query=query,
            results=[
                SearchResult(
                    title=f"Search results for: {query}",
                    snippet=(
                        f"Here are the latest results for your query about {query}. "
                        "This is a simulated response that would normally come from a "
                        "real search API like SerpAPI or Bing Search."
                    ),
                    url="https://example.com",
                )
            ],
        )
