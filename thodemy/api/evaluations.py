from flask import Blueprint, jsonify, request, send_file
from flask_login import current_user

from ..errors import BadRequestError, ValidationError
from ..scoring import GradingError
from ..services import evaluations as service
from ..services.export import XLSX_MIMETYPE, build_export
from ..utils.decorators import admin_required
from .forms import NotSubmittedForm, first_grade_error, grade_form, grade_scores

bp = Blueprint("evaluations", __name__, url_prefix="/api/admin/evaluations")

# camelCase keys accepted on PATCH, mapped onto model fields
_PATCH_ALIASES = {
    "traineeInfo": "trainee_info",
    "periodStart": "period_start",
    "periodEnd": "period_end",
    "learningPathId": "learning_path_id",
    "evaluatorId": "evaluator_id",
}


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise BadRequestError("Request body must be a JSON object.")
    return data


@bp.route("", methods=["GET"])
@admin_required
def list_evaluations():
    rows = service.list_evaluations(
        user_id=request.args.get("userId") or None,
        status=request.args.get("status") or None,
    )
    return jsonify(rows)


@bp.route("", methods=["POST"])
@admin_required
def create_evaluation():
    result = service.create_evaluation(_json_body(), evaluator_id=current_user.id)
    return jsonify(result), 201


@bp.route("/<int:evaluation_id>", methods=["GET"])
@admin_required
def get_evaluation(evaluation_id):
    return jsonify(service.get_evaluation(evaluation_id))


@bp.route("/<int:evaluation_id>", methods=["PATCH"])
@admin_required
def update_evaluation(evaluation_id):
    updates = {_PATCH_ALIASES.get(k, k): v for k, v in _json_body().items()}
    return jsonify(service.update_evaluation(evaluation_id, updates))


@bp.route("/<int:evaluation_id>", methods=["DELETE"])
@admin_required
def delete_evaluation(evaluation_id):
    service.delete_evaluation(evaluation_id)
    return "", 204


@bp.route("/<int:evaluation_id>/scores", methods=["GET"])
@admin_required
def list_scores(evaluation_id):
    return jsonify(service.get_scores(evaluation_id, sheet=request.args.get("sheet") or None))


@bp.route("/<int:evaluation_id>/scores", methods=["POST"])
@admin_required
def upsert_scores(evaluation_id):
    body = _json_body()
    return jsonify(service.upsert_scores(evaluation_id, body.get("scores")))


@bp.route("/<int:evaluation_id>/scores/<sheet>/<path:criterion_key>", methods=["DELETE"])
@admin_required
def delete_score(evaluation_id, sheet, criterion_key):
    return jsonify(service.delete_score(evaluation_id, sheet, criterion_key))


@bp.route("/<int:evaluation_id>/auto-populate", methods=["POST"])
@admin_required
def auto_populate(evaluation_id):
    return jsonify(service.auto_populate(evaluation_id))


@bp.route("/<int:evaluation_id>/scoreboard/grade", methods=["POST"])
@admin_required
def grade_activity(evaluation_id):
    payload = _json_body()
    form = grade_form(payload)
    if not form.validate():
        field, message = first_grade_error(form)
        raise ValidationError(message, details={"criterion": field})
    try:
        saved = service.grade_activity(
            evaluation_id,
            form.activityKey.data,
            form.activityLabel.data,
            grade_scores(form),
            remarks=form.remarks.data,
        )
    except GradingError as e:
        raise ValidationError(e.message, details={"criterion": e.criterion_key})
    return jsonify(saved)


@bp.route("/<int:evaluation_id>/scoreboard/did-not-submit", methods=["POST"])
@admin_required
def mark_not_submitted(evaluation_id):
    form = NotSubmittedForm()
    if not form.validate_on_submit():
        raise ValidationError("Activity key is required.", details=form.errors)
    try:
        saved = service.mark_not_submitted(
            evaluation_id, form.activityKey.data, form.activityLabel.data, remarks=form.remarks.data
        )
    except GradingError as e:
        raise ValidationError(e.message, details={"criterion": e.criterion_key})
    return jsonify(saved)


@bp.route("/<int:evaluation_id>/scoreboard/<path:activity_key>", methods=["DELETE"])
@admin_required
def delete_activity(evaluation_id, activity_key):
    return jsonify(service.delete_activity(evaluation_id, activity_key))


@bp.route("/<int:evaluation_id>/export.xlsx", methods=["GET"])
@admin_required
def export_evaluation(evaluation_id):
    bio, filename = build_export(evaluation_id, exported_by=current_user.display_name)
    return send_file(bio, as_attachment=True, download_name=filename, mimetype=XLSX_MIMETYPE)
