from __future__ import annotations

import logging
from functools import wraps

from flask import Flask, jsonify, session

from ..core.exceptions import CheckInRetryableError, ValidationError

logger = logging.getLogger(__name__)


def register(app: Flask, container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "Unauthorized"}), 401
            return view(*args, **kwargs)

        return wrapper

    checkin = container.checkin_service

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_check_in")
    @login_required
    def api_check_in():
        user_id = int(session["user_id"])
        try:
            record = checkin.check_in(user_id)
        except CheckInRetryableError:
            return (
                jsonify(
                    {
                        "success": False,
                        "retryable": True,
                        "message": "Previous WFH requests are still being processed, please try again",
                    }
                ),
                503,
            )
        except ValidationError as e:
            return jsonify({"success": False, "message": str(e)}), 400
        except Exception:
            logger.exception("check-in error for user %s", user_id)
            return jsonify({"success": False, "message": "Failed"}), 500
        return jsonify({"success": True, "attendance": record.to_dict()})

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    @login_required
    def api_attendance_today():
        try:
            data = checkin.today_status(int(session["user_id"]))
        except Exception:
            logger.exception("Error loading today's attendance")
            return jsonify({"error": "Internal server error"}), 500
        return jsonify(data)
