"""Web UI support for designing layouts and generating label PDFs."""

from __future__ import annotations

import argparse
import logging
import math
import os
from dataclasses import dataclass, field
from tempfile import NamedTemporaryFile
from typing import Any

from dotenv import load_dotenv
from flask import (
    Flask,
    after_this_request,
    jsonify,
    redirect,
    request,
    send_file,
    url_for,
)
from werkzeug.wrappers import Response

from config import AppSettings
from domain_data import collect_records, collect_records_by_ids
from domain_types import PrintableRecord
from errors import (
    CatastrophicAssemblyFailure,
    EmptyLayoutError,
    EmptySelectionError,
    GenerationInProgressError,
    LabelDesignerError,
    NotReadyError,
    TemplatePersistenceError,
    UnknownTemplateError,
)
from label_generation import DocumentRenderer, default_output_name, render_label_preview
from label_templates import LabelTemplateConfig, get_template, list_templates
from layout_editor import LayoutEditor, default_layout, editable_properties
from layout_model import LabelElement
from notifications import CollectingNotifier
from readiness import ReadinessCoordinator
from record_source import RecordSource
from template_store import TemplateStore

__all__ = ["run_web_app", "create_app", "create_app_from_env"]

logger = logging.getLogger(__name__)

DEFAULT_PAGE_LIMIT = 10

_ERROR_STATUS: dict[type[LabelDesignerError], tuple[int, str]] = {
    EmptyLayoutError: (400, "empty-layout"),
    EmptySelectionError: (400, "no-selection"),
    NotReadyError: (409, "not-ready"),
    GenerationInProgressError: (409, "in-progress"),
    UnknownTemplateError: (400, "unknown-template"),
    TemplatePersistenceError: (500, "template-store"),
    CatastrophicAssemblyFailure: (500, "generation"),
}


@dataclass
class DesignerSession:
    """State of the single local editing session served by the app."""

    editor: LayoutEditor
    coordinator: ReadinessCoordinator
    renderer: DocumentRenderer
    notifier: CollectingNotifier
    tile_on_a4: bool = False
    selected: list[PrintableRecord] = field(default_factory=list[PrintableRecord])


def _record_row(record: PrintableRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "tag": record.tag,
        "name": record.name,
        "category": record.category,
        "location": record.location,
        "attributes": [{"key": a.key, "value": a.value} for a in record.attributes],
    }


def _template_row(config: LabelTemplateConfig) -> dict[str, Any]:
    return {
        "id": config.id,
        "name": config.name,
        "width_mm": config.width_mm,
        "height_mm": config.height_mm,
        "page_format": config.page_format.value,
    }


def _element_row(element: LabelElement) -> dict[str, Any]:
    row = element.to_dict()
    row["resolved_value"] = element.resolved_value
    row["editable"] = list(editable_properties(element))
    return row


def _json_body() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def create_app(
    settings: AppSettings,
    *,
    source: RecordSource | None = None,
    store: TemplateStore | None = None,
    coordinator: ReadinessCoordinator | None = None,
) -> Flask:
    """Create the Flask app wired to the provided collaborators."""

    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key

    source = source or settings.record_source()
    store = store or settings.template_store()
    notifier = CollectingNotifier()

    template_choices = list(list_templates())
    if not template_choices:
        raise RuntimeError("No label templates are registered.")
    initial_config = template_choices[0]

    session = DesignerSession(
        editor=LayoutEditor(
            initial_config,
            default_layout(initial_config),
            base_ui=settings.public_base_url,
            notifier=notifier,
        ),
        coordinator=coordinator
        or ReadinessCoordinator(base_ui=settings.public_base_url, notifier=notifier),
        renderer=DocumentRenderer(notifier=notifier),
        notifier=notifier,
    )
    app.extensions["label_designer_session"] = session

    def _reply(payload: dict[str, Any], status: int = 200) -> tuple[Response, int]:
        payload["notices"] = [
            {"title": n.title, "message": n.message, "level": n.level.value}
            for n in notifier.drain()
        ]
        return jsonify(payload), status

    def _error(key: str, message: str, status: int) -> tuple[Response, int]:
        return _reply({"error": key, "message": message}, status)

    def _editor_state() -> dict[str, Any]:
        editor = session.editor
        return {
            "template": _template_row(editor.template_config),
            "tile_on_a4": session.tile_on_a4,
            "label_width_px": editor.label_width_px,
            "label_height_px": editor.label_height_px,
            "zoom": editor.zoom,
            "selected_id": editor.selected_id,
            "preview_index": editor.preview_index,
            "dragging": editor.drag is not None,
            "elements": [_element_row(e) for e in editor.layout],
        }

    @app.errorhandler(LabelDesignerError)
    def handle_designer_error(exc: LabelDesignerError):  # pyright: ignore[reportUnusedFunction]
        status, key = _ERROR_STATUS.get(type(exc), (400, "error"))
        return _error(key, str(exc), status)

    @app.errorhandler(KeyError)
    def handle_unknown_element(exc: KeyError):  # pyright: ignore[reportUnusedFunction]
        return _error("not-found", f"Unknown element {exc}", 404)

    @app.errorhandler(ValueError)
    def handle_bad_value(exc: ValueError):  # pyright: ignore[reportUnusedFunction]
        return _error("invalid", str(exc), 400)

    @app.route("/", methods=["GET"])
    def index() -> Response:  # pyright: ignore[reportUnusedFunction]
        return redirect(url_for("records_index"))

    # Records and selection

    @app.route("/records", methods=["GET"])
    def records_index():  # pyright: ignore[reportUnusedFunction]
        try:
            page = max(int(request.args.get("page", "1") or "1"), 1)
            limit = max(int(request.args.get("limit", DEFAULT_PAGE_LIMIT) or DEFAULT_PAGE_LIMIT), 1)
        except ValueError:
            return _error("invalid", "page and limit must be integers.", 400)
        try:
            records, total = collect_records(
                source,
                search=request.args.get("search"),
                category=request.args.get("category") or None,
                location=request.args.get("location") or None,
                page=page,
                limit=limit,
            )
        except Exception as exc:  # pragma: no cover - best effort message
            return _error("records", f"Failed to load records: {exc}", 500)

        return _reply(
            {
                "records": [_record_row(r) for r in records],
                "total": total,
                "page": page,
                "pages": math.ceil(total / limit) if total else 0,
                "selected": [r.id for r in session.selected],
            }
        )

    @app.route("/records/select", methods=["POST"])
    def records_select():  # pyright: ignore[reportUnusedFunction]
        body = _json_body()
        ids = body.get("record_ids") or request.form.getlist("record_id")
        ids = [str(record_id) for record_id in ids if record_id]
        if not ids:
            session.selected = []
            session.coordinator.select([])
            session.editor.set_preview_records([])
            return _error("no-selection", str(EmptySelectionError()), 400)

        records = collect_records_by_ids(source, ids)
        session.selected = records
        session.coordinator.select(records)
        session.editor.set_preview_records(records)
        return _reply({"selected": [r.id for r in records], "ready": session.coordinator.is_ready()})

    @app.route("/readiness", methods=["GET"])
    def readiness_status():  # pyright: ignore[reportUnusedFunction]
        coordinator = session.coordinator
        return _reply(
            {
                "ready": coordinator.is_ready(),
                "pending": coordinator.pending_ids(),
                "failed": coordinator.failed_ids(),
            }
        )

    # Label stock

    @app.route("/templates", methods=["GET"])
    def templates_index():  # pyright: ignore[reportUnusedFunction]
        return _reply(
            {
                "templates": [_template_row(c) for c in template_choices],
                "selected": session.editor.template_config.id,
                "tile_on_a4": session.tile_on_a4,
            }
        )

    @app.route("/templates/select", methods=["POST"])
    def templates_select():  # pyright: ignore[reportUnusedFunction]
        body = _json_body()
        config = get_template(str(body.get("template_id") or ""))
        session.editor.set_template_config(config)
        session.tile_on_a4 = _as_bool(body.get("tile_on_a4", session.tile_on_a4))
        return _reply(_editor_state())

    # Layout editing

    @app.route("/layout", methods=["GET"])
    def layout_state():  # pyright: ignore[reportUnusedFunction]
        return _reply(_editor_state())

    @app.route("/layout/elements", methods=["POST"])
    def layout_add():  # pyright: ignore[reportUnusedFunction]
        body = _json_body()
        element_id = session.editor.add_element(
            str(body.get("kind") or ""),
            content=body.get("content"),
            attribute_key=body.get("attribute_key"),
        )
        return _reply({"id": element_id, **_editor_state()}, 201)

    @app.route("/layout/elements/<element_id>", methods=["PATCH"])
    def layout_update(element_id: str):  # pyright: ignore[reportUnusedFunction]
        element = session.editor.update_element(element_id, _json_body())
        return _reply({"element": _element_row(element)})

    @app.route("/layout/elements/<element_id>", methods=["DELETE"])
    def layout_remove(element_id: str):  # pyright: ignore[reportUnusedFunction]
        session.editor.remove_element(element_id)
        return _reply(_editor_state())

    @app.route("/layout/select", methods=["POST"])
    def layout_select():  # pyright: ignore[reportUnusedFunction]
        session.editor.select(_json_body().get("element_id"))
        return _reply({"selected_id": session.editor.selected_id})

    @app.route("/layout/zoom", methods=["POST"])
    def layout_zoom():  # pyright: ignore[reportUnusedFunction]
        body = _json_body()
        direction = body.get("direction")
        if direction == "in":
            zoom = session.editor.zoom_in()
        elif direction == "out":
            zoom = session.editor.zoom_out()
        else:
            zoom = session.editor.set_zoom(float(body.get("level", 1.0)))
        return _reply({"zoom": zoom})

    @app.route("/layout/pointer/<action>", methods=["POST"])
    def layout_pointer(action: str):  # pyright: ignore[reportUnusedFunction]
        body = _json_body()
        editor = session.editor
        if action == "down":
            editor.pointer_down(
                str(body.get("element_id") or ""),
                float(body.get("x", 0)),
                float(body.get("y", 0)),
                mode=body.get("mode", "move"),
            )
        elif action == "move":
            editor.pointer_move(float(body.get("x", 0)), float(body.get("y", 0)))
        elif action in {"up", "leave"}:
            editor.pointer_up()
        else:
            return _error("not-found", f"Unknown pointer action '{action}'", 404)
        return _reply(_editor_state())

    @app.route("/layout/preview-record", methods=["POST"])
    def layout_preview_record():  # pyright: ignore[reportUnusedFunction]
        try:
            index = int(_json_body().get("index", 0))
            record = session.editor.switch_preview_record(index)
        except IndexError as exc:
            return _error("invalid", str(exc), 400)
        return _reply({"preview": _record_row(record), **_editor_state()})

    @app.route("/layout/preview.png", methods=["GET"])
    def layout_preview_png() -> Response:  # pyright: ignore[reportUnusedFunction]
        editor = session.editor
        record = editor.preview_record
        raster = session.coordinator.entry(record.id) if record else None
        png = render_label_preview(editor.layout, editor.template_config, record, raster)
        return Response(png, mimetype="image/png")

    # Saved layouts

    @app.route("/layouts", methods=["GET"])
    def layouts_index():  # pyright: ignore[reportUnusedFunction]
        templates = store.load(settings.tenant_id)
        return _reply(
            {
                "layouts": [
                    {
                        "id": t.id,
                        "name": t.name,
                        "base_template_config_id": t.base_template_config_id,
                        "tile_on_a4": t.tile_on_a4,
                        "element_count": len(t.elements),
                    }
                    for t in templates
                ]
            }
        )

    @app.route("/layouts", methods=["POST"])
    def layouts_save():  # pyright: ignore[reportUnusedFunction]
        name = str(_json_body().get("name") or request.form.get("name") or "")
        saved = session.editor.save_as_template(
            store,
            settings.tenant_id,
            name,
            tile_on_a4=session.tile_on_a4,
        )
        if saved is None:
            return _error("template-store", "The layout could not be saved.", 500)
        return _reply({"id": saved.id, "name": saved.name}, 201)

    @app.route("/layouts/<template_id>/load", methods=["POST"])
    def layouts_load(template_id: str):  # pyright: ignore[reportUnusedFunction]
        saved = store.get(settings.tenant_id, template_id)
        session.editor.set_template_config(get_template(saved.base_template_config_id))
        session.editor.load_template(saved)
        session.tile_on_a4 = saved.tile_on_a4
        return _reply(_editor_state())

    @app.route("/layouts/<template_id>", methods=["DELETE"])
    def layouts_delete(template_id: str):  # pyright: ignore[reportUnusedFunction]
        if not store.delete(settings.tenant_id, template_id):
            return _error("not-found", f"No saved layout '{template_id}'.", 404)
        return _reply({"deleted": template_id})

    # Generation

    @app.route("/generate", methods=["POST"])
    def generate():  # pyright: ignore[reportUnusedFunction]
        body = _json_body()
        skip_labels = int(body.get("skip", request.form.get("skip", "0")) or 0)
        draw_outline = _as_bool(body.get("draw_outline", False))

        tmp_file = NamedTemporaryFile(delete=False, suffix=".pdf")
        tmp_file.close()
        try:
            result = session.renderer.generate(
                tmp_file.name,
                session.selected,
                session.editor.apply(),
                session.editor.template_config,
                session.coordinator,
                tile_on_a4=session.tile_on_a4,
                skip=skip_labels,
                draw_outline=draw_outline,
            )
        except LabelDesignerError:
            try:
                os.remove(tmp_file.name)
            except OSError:
                pass
            raise

        @after_this_request
        # pyright: ignore[reportUnusedFunction]
        def cleanup_pdf(response: Response):
            try:
                os.remove(tmp_file.name)
            except OSError:
                pass
            return response

        # Per-record notices stay queued for the next JSON reply.
        response = send_file(
            result.output_path,
            mimetype="application/pdf",
            as_attachment=True,
            download_name=default_output_name(),
        )
        response.headers["X-Label-Issues"] = str(len(result.issues))
        return response

    return app


def create_app_from_env() -> Flask:
    """Create the Flask app using LABELS_* environment variables."""
    load_dotenv()
    return create_app(AppSettings.from_env())


def run_web_app(
    settings: AppSettings,
    host: str,
    port: int,
) -> None:
    """Launch a lightweight Flask app for interactive label design."""
    app = create_app(settings)

    use_reloader_env = os.getenv("USE_RELOADER")
    use_reloader = (
        str(use_reloader_env).lower() in {"1", "true", "yes", "on"}
        if use_reloader_env is not None
        else False
    )
    logger.info("Serving label designer on http://%s:%d", host, port)
    app.run(host=host, port=port, debug=False, use_reloader=use_reloader)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the web UI."""
    parser = argparse.ArgumentParser(
        description="Label designer web UI"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host/IP for the web UI (default: 127.0.0.1).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=4000,
        help="Port for the web UI (default: 4000).",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO)

    run_web_app(AppSettings.from_env(), host=args.host, port=args.port)
    return 0


if __name__ == "__main__":
    load_dotenv()
    main()
