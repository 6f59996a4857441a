from flask import jsonify
from flask_login import current_user, login_required

from podium import db
from podium.errors import NotFoundError, ValidationError
from podium.forms.predictions import PredictionForm
from podium.models import (
    Competitor,
    Event,
    FavoriteSeason,
    Prediction,
    Season,
    SeasonCompetitor,
    Sport,
    Tier,
    User,
)
from podium.routes.api import bp
from podium.routes.decorators import add_security_headers, flag_arg
from podium.services import leaderboard_service
from podium.services.leaderboard_service import LeaderboardScope
from podium.utils.cache_utils import cached_query


def _get_or_404(model, object_id, label):
    obj = db.session.get(model, object_id)
    if obj is None:
        raise NotFoundError(f"{label} not found")
    return obj


# Catalog


@cached_query("catalog", timeout=300)
def _sports():
    sports = Sport.query.filter_by(is_active=True).order_by(Sport.name).all()
    return [sport.to_dict() for sport in sports]


@cached_query("catalog", timeout=300)
def _tiers(sport_id):
    tiers = Tier.query.filter_by(sport_id=sport_id).order_by(Tier.display_order).all()
    return [tier.to_dict() for tier in tiers]


@cached_query("catalog", timeout=300)
def _seasons(tier_id):
    seasons = Season.query.filter_by(tier_id=tier_id).order_by(Season.year.desc()).all()
    return [season.to_dict() for season in seasons]


@cached_query("catalog", timeout=300)
def _season_competitors(season_id):
    competitors = (
        Competitor.query.join(
            SeasonCompetitor, SeasonCompetitor.competitor_id == Competitor.id
        )
        .filter(SeasonCompetitor.season_id == season_id)
        .order_by(Competitor.number, Competitor.name)
        .all()
    )
    return [competitor.to_dict() for competitor in competitors]


@bp.route("/sports")
def sports():
    return jsonify(_sports())


@bp.route("/sports/<int:sport_id>/tiers")
def sport_tiers(sport_id):
    _get_or_404(Sport, sport_id, "Sport")
    return jsonify(_tiers(sport_id))


@bp.route("/tiers/<int:tier_id>/seasons")
def tier_seasons(tier_id):
    _get_or_404(Tier, tier_id, "Tier")
    return jsonify(_seasons(tier_id))


@bp.route("/seasons/<int:season_id>/events")
def season_events(season_id):
    season = _get_or_404(Season, season_id, "Season")
    events = season.events.order_by(Event.round, Event.event_date).all()
    return jsonify([event.to_dict(include_result=True) for event in events])


@bp.route("/tiers/<int:tier_id>/seasons/active")
def tier_active_season(tier_id):
    _get_or_404(Tier, tier_id, "Tier")
    season = Season.get_active_for_tier(tier_id)
    if season is None:
        raise NotFoundError("No active season found")
    return jsonify(season.to_dict())


@bp.route("/seasons/<int:season_id>/events/upcoming")
def season_upcoming_events(season_id):
    _get_or_404(Season, season_id, "Season")
    return jsonify([event.to_dict() for event in Event.upcoming_for_season(season_id)])


@bp.route("/seasons/<int:season_id>/competitors")
def season_competitors(season_id):
    _get_or_404(Season, season_id, "Season")
    return jsonify(_season_competitors(season_id))


@bp.route("/events/<int:event_id>")
def event_detail(event_id):
    event = _get_or_404(Event, event_id, "Event")
    return jsonify(event.to_dict(include_result=True))


# Results


@bp.route("/events/<int:event_id>/results")
def event_results(event_id):
    event = _get_or_404(Event, event_id, "Event")
    rows = sorted(event.results.all(), key=lambda row: row.position)
    return jsonify(
        {
            "event": event.to_dict(),
            "results": [row.to_dict() for row in rows],
        }
    )


# Predictions


@bp.route("/predictions", methods=["POST"])
@login_required
@add_security_headers
def submit_prediction():
    form = PredictionForm()
    if not form.validate_on_submit():
        raise ValidationError(form.first_error())

    event = db.session.get(Event, form.event_id.data)
    prediction, created = Prediction.submit(
        current_user.id, event, form.competitor_ids()
    )
    db.session.commit()

    return jsonify({"prediction": prediction.to_dict(), "created": created}), (
        201 if created else 200
    )


@bp.route("/events/<int:event_id>/predictions")
@login_required
def event_predictions(event_id):
    event = _get_or_404(Event, event_id, "Event")

    # Other players' podiums stay hidden while predictions are open
    if event.is_prediction_open and not current_user.is_admin:
        return jsonify({"error": "Predictions are hidden until the cutoff"}), 403

    predictions = event.predictions.order_by(Prediction.submitted_at).all()
    return jsonify([prediction.to_dict() for prediction in predictions])


@bp.route("/events/<int:event_id>/predictions/me")
@login_required
@add_security_headers
def my_event_prediction(event_id):
    _get_or_404(Event, event_id, "Event")
    prediction = Prediction.query.filter_by(
        user_id=current_user.id, event_id=event_id
    ).first()
    if prediction is None:
        return jsonify({"error": "No prediction for this event"}), 404
    return jsonify(prediction.to_dict())


@bp.route("/users/<int:user_id>/seasons/<int:season_id>/predictions")
@login_required
def user_season_predictions(user_id, season_id):
    _get_or_404(User, user_id, "User")
    _get_or_404(Season, season_id, "Season")

    predictions = Prediction.get_for_user_season(user_id, season_id)
    if user_id != current_user.id and not current_user.is_admin:
        predictions = [p for p in predictions if not p.event.is_prediction_open]

    return jsonify([prediction.to_dict() for prediction in predictions])


# Leaderboards


def _standings_response(scope, standings):
    return jsonify(
        {
            **scope.to_dict(),
            "standings": [entry.to_dict() for entry in standings],
        }
    )


@bp.route("/leaderboard/seasons/<int:season_id>")
def season_leaderboard(season_id):
    standings = leaderboard_service.season_leaderboard(
        season_id, all_participants=flag_arg("all_participants")
    )
    season = db.session.get(Season, season_id)
    return _standings_response(LeaderboardScope.for_season(season), standings)


@bp.route("/leaderboard/tiers/<int:tier_id>")
def tier_leaderboard(tier_id):
    standings = leaderboard_service.tier_leaderboard(
        tier_id, all_participants=flag_arg("all_participants")
    )
    return _standings_response(LeaderboardScope(tier_id=tier_id), standings)


@bp.route("/leaderboard/global")
def global_leaderboard():
    standings = leaderboard_service.global_leaderboard(
        all_participants=flag_arg("all_participants")
    )
    return _standings_response(LeaderboardScope.global_scope(), standings)


@bp.route("/leaderboard/seasons/<int:season_id>/users/<int:user_id>")
def user_season_statistics(season_id, user_id):
    _get_or_404(Season, season_id, "Season")
    _get_or_404(User, user_id, "User")

    data = leaderboard_service.get_user_statistics(season_id, user_id)
    if flag_arg("include_predictions"):
        data["predictions"] = [
            p.to_dict()
            for p in Prediction.get_for_user_season(user_id, season_id)
            if p.is_scored
        ]
    return jsonify(data)


# Favorite seasons


@bp.route("/favorites/seasons")
@login_required
def favorite_seasons():
    favorites = FavoriteSeason.for_user(current_user.id)
    return jsonify([favorite.to_dict() for favorite in favorites])


@bp.route("/favorites/seasons/<int:season_id>", methods=["POST"])
@login_required
@add_security_headers
def add_favorite_season(season_id):
    favorite = FavoriteSeason.add(current_user.id, season_id)
    db.session.commit()
    return jsonify(favorite.to_dict()), 201


@bp.route("/favorites/seasons/<int:season_id>", methods=["DELETE"])
@login_required
@add_security_headers
def remove_favorite_season(season_id):
    if not FavoriteSeason.remove(current_user.id, season_id):
        raise NotFoundError("Season is not a favorite")
    db.session.commit()
    return jsonify({"success": True})


@bp.route("/favorites/seasons/<int:season_id>/check")
@login_required
def check_favorite_season(season_id):
    return jsonify(
        {
            "season_id": season_id,
            "is_favorite": FavoriteSeason.is_favorite(current_user.id, season_id),
        }
    )
