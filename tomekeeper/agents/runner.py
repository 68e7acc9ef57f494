"""
Model runner for Tomekeeper.

This module handles communication with Ollama: one non-streaming JSON-mode
generate call per import, plus a reachability check.
"""

import httpx
import json
import time
from typing import Any, Dict, Optional
import logging

from ..database import DocumentLibrary
from ..errors import ConnectivityError, MalformedResponseError


def strip_code_fences(response: str) -> str:
    """Remove markdown code fences some models wrap around JSON."""
    response = response.strip()
    if response.startswith("```json"):
        response = response[7:]
    if response.startswith("```"):
        response = response[3:]
    if response.endswith("```"):
        response = response[:-3]
    return response.strip()


def parse_json_object(response: str) -> Dict[str, Any]:
    """
    Parse a model response that must be a JSON object.

    Raises:
        MalformedResponseError: If the response is not JSON or not an object
    """
    try:
        result = json.loads(strip_code_fences(response))
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Model response is not valid JSON ({e.msg})") from e

    if not isinstance(result, dict):
        raise MalformedResponseError(f"Model response is a JSON {type(result).__name__}, not an object")
    return result


class AgentRunner:
    """
    Manages communication with Ollama.
    """

    def __init__(self, ollama_host: str = "http://localhost:11434", model: str = "llama3",
                 timeout: float = 120.0, library: Optional[DocumentLibrary] = None,
                 client: Optional[httpx.Client] = None):
        """
        Initialize the runner.

        Args:
            ollama_host: The Ollama server URL
            model: The model name to use for extraction
            timeout: Seconds to wait for one round trip
            library: Optional document library that logs every call
            client: Optional preconfigured HTTP client, mainly for tests
        """
        self.ollama_host = ollama_host.rstrip("/")
        self.model = model
        self.client = client or httpx.Client(timeout=timeout)
        self.library = library

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def close(self):
        self.client.close()

    def _call_ollama_sync(self, prompt: str, domain: str = "unknown") -> str:
        """
        Send one generate request, logging the call for reproducibility.

        Args:
            prompt: The complete extraction prompt
            domain: Domain kind being imported, recorded in the call log

        Returns:
            The model's response text

        Raises:
            ConnectivityError: If Ollama cannot be reached or answers with an error status
        """
        start_time = time.time()
        success = False
        error_message = None
        raw_response = ""

        try:
            payload = {
                "model": self.model,
                "prompt": prompt,
                "stream": False,
                "format": "json"
            }

            response = self.client.post(
                f"{self.ollama_host}/api/generate",
                json=payload
            )
            response.raise_for_status()

            result = response.json()
            answer = result.get("response", "") if isinstance(result, dict) else ""
            if not isinstance(answer, str):
                error_message = f"Ollama returned a {type(answer).__name__} response instead of text"
                raise MalformedResponseError(error_message)
            raw_response = answer
            success = True

            return raw_response

        except httpx.HTTPStatusError as e:
            error_message = f"Ollama request failed: HTTP {e.response.status_code}"
            raise ConnectivityError(
                error_message,
                f"The model server answered HTTP {e.response.status_code}. Is '{self.model}' pulled?"
            ) from e
        except httpx.RequestError as e:
            error_message = f"Failed to connect to Ollama: {e}"
            raise ConnectivityError(
                error_message,
                f"Could not reach the model server at {self.ollama_host}."
            ) from e
        except json.JSONDecodeError as e:
            error_message = f"Ollama returned a non-JSON envelope: {e}"
            raise MalformedResponseError(error_message) from e
        finally:
            execution_time_ms = int((time.time() - start_time) * 1000)

            if self.library and self.library.connection:
                try:
                    self.library.log_ai_call(
                        domain=domain,
                        model_name=self.model,
                        prompt=prompt,
                        raw_response=raw_response,
                        success=success,
                        error_message=error_message,
                        execution_time_ms=execution_time_ms
                    )
                except Exception as log_error:
                    logging.warning(f"Failed to log model call: {log_error}")

    def extract(self, prompt: str, domain: str = "unknown") -> Dict[str, Any]:
        """
        Run one extraction and parse the model's answer.

        Args:
            prompt: The complete extraction prompt
            domain: Domain kind being imported

        Returns:
            The parsed JSON object, still untrusted

        Raises:
            ConnectivityError: If Ollama cannot be reached
            MalformedResponseError: If the answer is not a JSON object
        """
        logging.info(f"Sending {domain} extraction to {self.model} ({len(prompt)} prompt characters)")
        response = self._call_ollama_sync(prompt, domain)
        result = parse_json_object(response)
        logging.debug(f"Model returned keys: {sorted(result)}")
        return result

    def check_connection(self) -> bool:
        """
        Check whether the Ollama server answers.

        Returns:
            True for any 2xx answer from the tags endpoint, False otherwise
        """
        try:
            response = self.client.get(f"{self.ollama_host}/api/tags")
        except httpx.RequestError as e:
            logging.warning(f"Ollama is not reachable at {self.ollama_host}: {e}")
            return False
        return response.is_success
