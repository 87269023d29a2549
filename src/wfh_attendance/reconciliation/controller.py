from __future__ import annotations

import hmac
import logging
from datetime import datetime, timezone
from functools import wraps

from flask import Flask, current_app, jsonify, request, session

from ..core.enums import Role

logger = logging.getLogger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def register(app: Flask, container) -> None:
    def cron_key_required(view):
        """Bearer check against CRON_API_KEY; open when no key is configured."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            expected = current_app.config.get("CRON_API_KEY")
            if expected:
                provided = request.headers.get("Authorization", "")
                if not hmac.compare_digest(provided, f"Bearer {expected}"):
                    return jsonify({"error": "Unauthorized"}), 401
            return view(*args, **kwargs)

        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"error": "Unauthorized"}), 401
            if session.get("role") != Role.ADMIN.value:
                return jsonify({"error": "Forbidden"}), 403
            return view(*args, **kwargs)

        return wrapper

    reconciliation = container.reconciliation_service

    @app.route("/api/cron/wfh-cleanup", methods=["POST"], endpoint="cron_wfh_cleanup")
    @cron_key_required
    def cron_wfh_cleanup():
        try:
            logger.info("Starting WFH cleanup cron job")
            stats_before = reconciliation.get_pending_stats()
            result = reconciliation.reconcile_all()
            stats_after = reconciliation.get_pending_stats()
        except Exception as exc:
            logger.exception("WFH cleanup cron job failed")
            return (
                jsonify(
                    {
                        "success": False,
                        "error": "WFH cleanup failed",
                        "message": str(exc),
                        "timestamp": _timestamp(),
                    }
                ),
                500,
            )

        payload = {
            "success": True,
            "message": "WFH cleanup completed successfully",
            "timestamp": _timestamp(),
            "results": result.to_dict(),
            "statistics": {"before": stats_before.to_dict(), "after": stats_after.to_dict()},
        }
        logger.info("WFH cleanup cron job completed: %s", payload["results"])
        return jsonify(payload), 200

    @app.route("/api/cron/wfh-cleanup", methods=["GET"], endpoint="cron_wfh_cleanup_stats")
    @cron_key_required
    def cron_wfh_cleanup_stats():
        try:
            stats = reconciliation.get_pending_stats()
        except Exception as exc:
            logger.exception("Error getting WFH cleanup stats")
            return (
                jsonify(
                    {
                        "success": False,
                        "error": "Failed to get WFH cleanup statistics",
                        "message": str(exc),
                        "timestamp": _timestamp(),
                    }
                ),
                500,
            )
        return jsonify(
            {
                "success": True,
                "message": "WFH cleanup statistics retrieved",
                "timestamp": _timestamp(),
                "statistics": stats.to_dict(),
            }
        )

    @app.route("/api/admin/wfh-management", methods=["GET"], endpoint="admin_wfh_management")
    @admin_required
    def admin_wfh_management():
        action = request.args.get("action")
        if action != "stats":
            return jsonify({"error": "Invalid action"}), 400
        try:
            data = reconciliation.get_dashboard()
        except Exception:
            logger.exception("Error in WFH management GET")
            return jsonify({"error": "Internal server error"}), 500
        return jsonify({"success": True, "data": data})

    @app.route("/api/admin/wfh-management", methods=["POST"], endpoint="admin_wfh_management_action")
    @admin_required
    def admin_wfh_management_action():
        body = request.get_json(silent=True) or {}
        action = body.get("action")

        if action == "cleanup-expired":
            result = reconciliation.reconcile_all()
            return jsonify(
                {
                    "success": result.ok,
                    "message": "Expired WFH requests processed successfully"
                    if result.ok
                    else "Expired WFH requests processed with errors",
                    "data": result.to_dict(),
                }
            )

        if action == "bulk-reject-expired":
            result = reconciliation.bulk_reject_expired(admin_user_id=int(session["user_id"]))
            return jsonify(
                {
                    "success": result.ok,
                    "message": (
                        f"Bulk rejection completed. Processed {result.processed_count} requests, "
                        f"created {result.absent_records_created} absent records."
                    ),
                    "data": result.to_dict(),
                }
            )

        return jsonify({"error": "Invalid action"}), 400
