"""
Локальный рантайм воркеров для разработки.

Повторяет HTTP API облачного рантайма ровно в том объёме, который нужен
DialogWorkerClient: создание воркера, ключ вызова, invoke-and-await и
удаление. Воркеры живут в памяти процесса.

Ключ вызова работает как ключ идемпотентности: повторный вызов с тем же
ключом возвращает первый ответ и не делает шаг ещё раз.

Запуск: python -m shelfbot.workers.runtime
"""
from __future__ import annotations

import secrets
import threading
from typing import Mapping

from flask import Flask, abort, jsonify, request

from shelfbot.config import settings
from shelfbot.dialogs.catalog import DialogType, fsm_for
from shelfbot.dialogs.worker import DialogWorker
from shelfbot.errors import TransportDecodeError
from shelfbot.logging import logger

STEP_FUNCTION = "golem:template/api/step"
STATE_FUNCTION = "golem:template/api/state"


class WorkerRegistry:
    def __init__(self, templates: Mapping[str, DialogType]):
        self._templates = dict(templates)
        self._lock = threading.Lock()
        self._workers: dict[tuple[str, str], DialogWorker] = {}
        # (template, worker) -> ключ -> закешированный ответ (None, пока ключ не использован)
        self._keys: dict[tuple[str, str], dict[str, dict | None]] = {}
        # Проверка ключа, шаг и запись ответа идут под этой блокировкой воркера
        self._invocation_locks: dict[tuple[str, str], threading.Lock] = {}

    def knows_template(self, template_id: str) -> bool:
        return template_id in self._templates

    def create(self, template_id: str, name: str) -> bool:
        """False, если воркер с таким именем уже есть."""
        address = (template_id, name)
        with self._lock:
            if address in self._workers:
                return False
            self._workers[address] = DialogWorker(fsm_for(self._templates[template_id]))
            self._keys[address] = {}
            self._invocation_locks[address] = threading.Lock()
        logger.info("Runtime: worker %s created from template %s", name, template_id)
        return True

    def issue_key(self, template_id: str, name: str) -> str | None:
        address = (template_id, name)
        with self._lock:
            if address not in self._workers:
                return None
            key = secrets.token_hex(16)
            self._keys[address][key] = None
        return key

    def get(self, template_id: str, name: str) -> DialogWorker | None:
        with self._lock:
            return self._workers.get((template_id, name))

    def invocation_lock(self, template_id: str, name: str) -> threading.Lock | None:
        with self._lock:
            return self._invocation_locks.get((template_id, name))

    def cached(self, template_id: str, name: str, key: str) -> tuple[bool, dict | None]:
        """(ключ выдан?, закешированный ответ)."""
        with self._lock:
            keys = self._keys.get((template_id, name), {})
            return key in keys, keys.get(key)

    def remember(self, template_id: str, name: str, key: str, response: dict) -> None:
        with self._lock:
            keys = self._keys.get((template_id, name))
            if keys is not None:
                keys[key] = response

    def delete(self, template_id: str, name: str) -> bool:
        address = (template_id, name)
        with self._lock:
            self._keys.pop(address, None)
            self._invocation_locks.pop(address, None)
            removed = self._workers.pop(address, None) is not None
        if removed:
            logger.info("Runtime: worker %s deleted", name)
        return removed


def create_runtime_app(
    templates: Mapping[str, DialogType],
    token: str = "",
    step_function: str = STEP_FUNCTION,
) -> Flask:
    app = Flask(__name__)
    registry = WorkerRegistry(templates)
    app.extensions["worker_registry"] = registry

    @app.before_request
    def check_token() -> None:
        if token and request.headers.get("Authorization") != f"Bearer {token}":
            abort(401)

    @app.route("/templates/<template_id>/workers", methods=["POST"])
    def create_worker(template_id: str):
        if not registry.knows_template(template_id):
            abort(404)
        body = request.get_json(silent=True) or {}
        name = body.get("name")
        if not isinstance(name, str) or not name:
            abort(400)
        if not registry.create(template_id, name):
            abort(409)
        return jsonify(
            {
                "workerId": {"rawTemplateId": template_id, "workerName": name},
                "templateVersionUsed": 0,
            }
        )

    @app.route("/templates/<template_id>/workers/<name>/key", methods=["POST"])
    def invocation_key(template_id: str, name: str):
        key = registry.issue_key(template_id, name)
        if key is None:
            abort(404)
        return jsonify({"value": key})

    @app.route("/templates/<template_id>/workers/<name>/invoke-and-await", methods=["POST"])
    def invoke_and_await(template_id: str, name: str):
        worker = registry.get(template_id, name)
        lock = registry.invocation_lock(template_id, name)
        if worker is None or lock is None:
            abort(404)

        key = request.args.get("invocation-key", "")
        with lock:
            issued, cached = registry.cached(template_id, name, key)
            if not issued:
                abort(403)
            if cached is not None:
                return jsonify(cached)

            response = _call(worker, request.args.get("function", ""))
            registry.remember(template_id, name, key, response)
        return jsonify(response)

    def _call(worker: DialogWorker, function: str) -> dict:
        if function == step_function:
            params = (request.get_json(silent=True) or {}).get("params")
            if not isinstance(params, list) or len(params) != 1 or not isinstance(params[0], str):
                abort(400)
            try:
                return {"result": [{"ok": worker.step(params[0])}]}
            except TransportDecodeError as e:
                return {"result": [{"err": f"Event JSON deserialization failed: {e}"}]}
        if function == STATE_FUNCTION:
            return {"result": [{"ok": worker.state.to_dict()}]}
        abort(400)

    @app.route("/templates/<template_id>/workers/<name>", methods=["DELETE"])
    def delete_worker(template_id: str, name: str):
        if not registry.delete(template_id, name):
            abort(404)
        return jsonify({})

    return app


def main() -> None:
    templates = {template_id: DialogType(kind) for kind, template_id in settings.template_ids.items()}
    app = create_runtime_app(templates, token=settings.runtime_token, step_function=settings.worker_step_function)
    logger.info("Starting local worker runtime on %s:%d", settings.runtime_host, settings.runtime_port)
    app.run(host=settings.runtime_host, port=settings.runtime_port, threaded=True)


if __name__ == "__main__":
    main()
