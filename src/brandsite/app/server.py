from __future__ import annotations

from flask import Flask, jsonify, request

from brandsite.features.bootstrap.service import SiteContext
from brandsite.features.leads.handler import handle_form_request


def create_app(ctx: SiteContext) -> Flask:
    """
    Serves the lead-capture endpoint. Everything else on the site is static.
    """
    app = Flask(__name__)
    app.config["SITE_CONTEXT"] = ctx

    @app.route("/api/submit-form", methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"])
    def submit_form():
        body = request.get_json(silent=True) if request.method == "POST" else None
        resp, headers = handle_form_request(request.method, body, ctx.leads)
        if request.method == "OPTIONS":
            return "", resp.status, headers
        return jsonify(resp.body), resp.status, headers

    return app
