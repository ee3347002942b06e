"""HTTP entrypoint for the shelter map client."""

from __future__ import annotations

import logging
import math
import threading
from typing import Any, Optional

from flask import Flask, jsonify, request

from shelters.core.config import get_settings
from shelters.core.service import ShelterService, build_service

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------- App & service ----------
app = Flask(__name__)
app.json.ensure_ascii = False
_service: Optional[ShelterService] = None
_service_lock = threading.Lock()


def get_service() -> ShelterService:
    global _service
    with _service_lock:
        if _service is None:
            _service = build_service(get_settings())
        return _service


class BadRequest(ValueError):
    pass


def _param(name: str, default: Any = None) -> Any:
    """Read a parameter from a JSON object body, the form or the query string."""
    payload = request.get_json(silent=True)
    if isinstance(payload, dict) and name in payload:
        return payload[name]
    return request.values.get(name, default)


def _float_param(name: str) -> float:
    raw = _param(name)
    if raw is None or raw == "":
        raise BadRequest(f"{name} is required")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise BadRequest(f"{name} must be numeric") from None
    if not math.isfinite(value):
        raise BadRequest(f"{name} must be finite")
    return value


@app.errorhandler(BadRequest)
def handle_bad_request(exc: BadRequest) -> Any:
    return jsonify({"error": str(exc)}), 400


# ---------- Routes ----------


@app.get("/")
def root() -> Any:
    return "ok", 200


@app.get("/healthz")
def healthcheck() -> Any:
    return jsonify({"status": "ok", "shelterCount": get_service().count()}), 200


@app.post("/admin/initialize")
def initialize_data() -> Any:
    """Reload the store. Answers with a human-readable status line."""
    try:
        result = get_service().reinitialize()
    except Exception as exc:  # noqa: BLE001
        logger.exception("Shelter reinitialization failed")
        return f"데이터 초기화 중 오류가 발생했습니다: {exc}", 500
    if result.success:
        suffix = "" if result.complete else " (일부 페이지 누락)"
        return f"데이터 초기화가 완료되었습니다. {result.count}건 저장{suffix}", 200
    return f"데이터 초기화에 실패했습니다: {result.reason}", 200


@app.post("/api/nearest-shelters")
def nearest_shelters() -> Any:
    latitude = _float_param("latitude")
    longitude = _float_param("longitude")
    limit_raw = _param("limit", get_settings().nearest_default_limit)
    try:
        limit = int(limit_raw)
    except (TypeError, ValueError):
        raise BadRequest("limit must be an integer") from None
    if limit <= 0:
        raise BadRequest("limit must be positive")

    matches = get_service().find_nearest(latitude, longitude, limit)
    return jsonify([match.to_json() for match in matches])


@app.post("/api/shelters-in-radius")
def shelters_in_radius() -> Any:
    latitude = _float_param("latitude")
    longitude = _float_param("longitude")
    radius = _float_param("radius")
    if radius < 0:
        raise BadRequest("radius must not be negative")

    matches = get_service().find_within_radius(latitude, longitude, radius)
    return jsonify([match.to_json() for match in matches])


@app.get("/api/search")
def search_shelters() -> Any:
    kind = request.args.get("type", "")
    keyword = request.args.get("keyword", "")
    records = get_service().search_by_field(kind, keyword)
    return jsonify([record.to_json() for record in records])


@app.get("/api/shelters")
def all_shelters() -> Any:
    return jsonify([record.to_json() for record in get_service().find_all()])


@app.get("/api/shelter/<int:shelter_id>")
def shelter_detail(shelter_id: int) -> Any:
    record = get_service().find_by_id(shelter_id)
    if record is None:
        return jsonify({"error": "shelter not found"}), 404
    return jsonify(record.to_json())


def main() -> None:
    port = get_settings().port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
