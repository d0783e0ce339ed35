"""
HTTP-клиент рантайма воркеров.

Каждый диалог живёт в отдельном воркере, созданный из шаблона своего типа.
Клиент ничего не повторяет сам: политику ретраев решает вызывающий.
Таймаут и сетевой сбой для вызывающего неотличимы.
"""
import json
from typing import Mapping, Sequence

import requests

from shelfbot.dialogs.catalog import DialogType
from shelfbot.dialogs.events import Event, encode_event
from shelfbot.dialogs.fsm import DialogOutcome
from shelfbot.errors import CredentialError, InvokeError, WorkerCreateError, WorkerDeleteError
from shelfbot.logging import logger


class DialogWorkerClient:
    def __init__(
        self,
        api_root: str,
        token: str,
        templates: Mapping[DialogType, str],
        step_function: str,
        timeout: float = 30.0,
        session: requests.Session | None = None,
    ):
        self._api_root = api_root.rstrip("/")
        self._templates = dict(templates)
        self._step_function = step_function
        self._timeout = timeout
        self._http = session or requests.Session()
        self._http.headers["Authorization"] = f"Bearer {token}"

    def close(self) -> None:
        self._http.close()

    def _workers_url(self, dialog_type: DialogType) -> str:
        return f"{self._api_root}/templates/{self._templates[dialog_type]}/workers"

    def _worker_url(self, dialog_type: DialogType, worker_id: str) -> str:
        return f"{self._workers_url(dialog_type)}/{worker_id}"

    def create(self, worker_id: str, dialog_type: DialogType, env: Sequence[tuple[str, str]]) -> None:
        """Создать воркер. Имя в ответе обязано совпасть с запрошенным."""
        body = {
            "name": worker_id,
            "env": [[key, value] for key, value in env],
            "args": [],
        }
        try:
            response = self._http.post(self._workers_url(dialog_type), json=body, timeout=self._timeout)
        except requests.RequestException as e:
            raise WorkerCreateError(f"Create worker: request error: {e}") from e

        if response.status_code != 200:
            raise WorkerCreateError(f"Create worker: received non-OK HTTP status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise WorkerCreateError(f"Create worker: JSON error: {e}") from e

        worker_name = None
        if isinstance(payload, dict) and isinstance(payload.get("workerId"), dict):
            worker_name = payload["workerId"].get("workerName")
        if not isinstance(worker_name, str):
            raise WorkerCreateError("Create worker: unexpected JSON response")
        if worker_name != worker_id:
            raise WorkerCreateError(
                f"Create worker: mismatched worker IDs: expected {worker_id}, got {worker_name}"
            )

        logger.info("Created %s worker %s", dialog_type.value, worker_id)

    def obtain_credential(self, worker_id: str, dialog_type: DialogType) -> str:
        """Получить ключ вызова для одного шага."""
        url = f"{self._worker_url(dialog_type, worker_id)}/key"
        try:
            response = self._http.post(url, timeout=self._timeout)
        except requests.RequestException as e:
            raise CredentialError(f"Invocation key: request error: {e}") from e

        if response.status_code != 200:
            raise CredentialError(f"Invocation key: received non-OK HTTP status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise CredentialError(f"Invocation key: JSON error: {e}") from e

        key = payload.get("value") if isinstance(payload, dict) else None
        if not isinstance(key, str):
            raise CredentialError("Invocation key: missing field in JSON response")
        return key

    def invoke_step(
        self,
        dialog_type: DialogType,
        worker_id: str,
        credential: str,
        event: Event,
    ) -> DialogOutcome:
        """Вызвать step воркера и дождаться ответа. Берётся ровно один элемент `result`."""
        url = f"{self._worker_url(dialog_type, worker_id)}/invoke-and-await"
        params = {"invocation-key": credential, "function": self._step_function}
        body = {"params": [encode_event(event)]}
        try:
            response = self._http.post(url, params=params, json=body, timeout=self._timeout)
        except requests.RequestException as e:
            raise InvokeError(f"Invoke function: request error: {e}") from e

        if response.status_code != 200:
            raise InvokeError(f"Invoke function: received non-OK HTTP status: {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise InvokeError(f"Invoke function: JSON error: {e}") from e

        results = payload.get("result") if isinstance(payload, dict) else None
        if not isinstance(results, list):
            raise InvokeError("Invoke function: response has no result list")
        if not results:
            raise InvokeError("No result found in dialog step")

        return _decode_outcome(results[0])

    def delete(self, worker_id: str, dialog_type: DialogType) -> None:
        """Удалить воркер. Best-effort: ошибки только логируются."""
        try:
            response = self._http.delete(self._worker_url(dialog_type, worker_id), timeout=self._timeout)
        except requests.RequestException as e:
            error = WorkerDeleteError(f"Delete worker: request error: {e}")
        else:
            if response.status_code == 200:
                logger.info("Deleted %s worker %s", dialog_type.value, worker_id)
                return
            error = WorkerDeleteError(f"Delete worker: received non-OK HTTP status: {response.status_code}")

        # Воркер без сессии недостижим; утечку видно только в логе
        logger.warning("Worker %s left behind: %s", worker_id, error)


def _decode_outcome(element: object) -> DialogOutcome:
    """
    Разобрать элемент `result`.

    Элемент может быть объектом или JSON-строкой и может быть завёрнут
    в вариант ok/err (в любом регистре).
    """
    try:
        if isinstance(element, str):
            element = json.loads(element)
        if isinstance(element, dict) and len(element) == 1:
            (tag, inner), = element.items()
            if tag.lower() == "err":
                raise InvokeError(f"Error in dialog step: {inner}")
            if tag.lower() == "ok":
                element = inner
        if not isinstance(element, dict):
            raise InvokeError(f"Invoke function: unexpected result element: {element!r}")
        return DialogOutcome.from_dict(element)
    except (KeyError, TypeError, ValueError) as e:
        raise InvokeError(f"Invoke function: JSON deserialization failed: {e}") from e
