import logging

from flask import jsonify
from flask_login import current_user

from podium import db
from podium.errors import NotFoundError, ValidationError
from podium.forms.predictions import PointsRuleForm, ResultsForm
from podium.models import Event, PointsRule, Season
from podium.routes.admin import bp
from podium.routes.decorators import add_security_headers, admin_required
from podium.services import results_service, statistics_service
from podium.utils.cache_utils import invalidate_cache_pattern

logger = logging.getLogger(__name__)


@bp.route("/seasons/<int:season_id>/points-rule", methods=["POST"])
@admin_required
@add_security_headers
def create_points_rule(season_id):
    season = db.session.get(Season, season_id)
    if season is None:
        raise NotFoundError("Season not found")

    form = PointsRuleForm()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())

    rule = PointsRule.create_rule(
        season,
        form.exact_position_points.data,
        form.one_off_points.data,
        form.two_off_points.data,
        form.in_podium_points.data,
    )
    db.session.commit()

    logger.info(f"{current_user.username} created points rule for season {season_id}")
    return jsonify(rule.to_dict()), 201


@bp.route("/seasons/<int:season_id>/activate", methods=["POST"])
@admin_required
@add_security_headers
def activate_season(season_id):
    season = db.session.get(Season, season_id)
    if season is None:
        raise NotFoundError("Season not found")

    season.activate()
    db.session.commit()
    invalidate_cache_pattern("*catalog*")

    logger.info(f"{current_user.username} activated season {season_id}")
    return jsonify(season.to_dict())


@bp.route("/events/<int:event_id>/results", methods=["POST"])
@admin_required
@add_security_headers
def record_results(event_id):
    event = db.session.get(Event, event_id)
    if event is None:
        raise NotFoundError("Event not found")

    form = ResultsForm()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())

    summary = results_service.record_results(event, form.competitor_ids())

    logger.info(f"{current_user.username} recorded results for event {event_id}")
    return jsonify(summary.to_dict())


@bp.route("/events/<int:event_id>/rescore", methods=["POST"])
@admin_required
def rescore_event(event_id):
    summary = results_service.rescore_event(event_id)
    return jsonify(summary.to_dict())


@bp.route("/seasons/<int:season_id>/recalculate", methods=["POST"])
@admin_required
def recalculate_statistics(season_id):
    job = statistics_service.start_recalculation(season_id)
    return jsonify(job.to_dict()), 202


@bp.route("/jobs/<job_id>")
@admin_required
def job_status(job_id):
    return jsonify(statistics_service.get_job(job_id).to_dict())
