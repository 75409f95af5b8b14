from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import IntegerField, PasswordField, StringField, TextAreaField
from wtforms.validators import DataRequired, Email, InputRequired, Length, NumberRange, Optional

from ..scoring.catalogue import CRITERIA, criterion_display_label


class LoginForm(FlaskForm):
    email = StringField("Email", validators=[DataRequired(), Email()])
    password = PasswordField("Password", validators=[DataRequired()])


class NotSubmittedForm(FlaskForm):
    activityKey = StringField("Activity", validators=[DataRequired(), Length(max=200)])
    activityLabel = StringField("Label", validators=[Optional(), Length(max=255)])
    remarks = TextAreaField("Remarks", validators=[Optional()])


class _GradeForm(NotSubmittedForm):
    pass


# one IntegerField per rubric criterion, bounded by the criterion's max
for _c in CRITERIA:
    setattr(
        _GradeForm,
        _c.key,
        IntegerField(
            criterion_display_label(_c),
            validators=[InputRequired(), NumberRange(min=0, max=_c.max_score)],
        ),
    )


def grade_formdata(payload):
    """Flatten ``{activityKey, scores: {...}}`` into form data; values are sent as text so floats fail int parsing."""
    payload = payload or {}
    data = MultiDict()
    for key in ("activityKey", "activityLabel", "remarks"):
        if payload.get(key) is not None:
            data[key] = str(payload[key])
    scores = payload.get("scores") or {}
    if isinstance(scores, dict):
        for c in CRITERIA:
            value = scores.get(c.key)
            if value is None or isinstance(value, bool) or str(value).strip() == "":
                continue
            data[c.key] = str(value).strip()
    return data


def grade_form(payload):
    return _GradeForm(formdata=grade_formdata(payload))


def grade_scores(form):
    return {c.key: form[c.key].data for c in CRITERIA}


def first_grade_error(form):
    """(criterion_key or field name, message) for the first failing field in catalogue order."""
    if form.activityKey.errors:
        return "activityKey", "Activity key is required."
    missing = [c for c in CRITERIA if not form[c.key].raw_data]
    if missing:
        first = missing[0]
        return first.key, f"Complete all criteria before applying ({len(missing)} missing, first: {criterion_display_label(first)})."
    for c in CRITERIA:
        if form[c.key].errors:
            return c.key, f"Score for {criterion_display_label(c)} must be a whole number between 0 and {c.max_score}."
    for name, errors in form.errors.items():
        return name, errors[0]
    return None, "Invalid grade."
