#!/usr/bin/env python3
"""
Podium Management CLI

Command-line management for the Podium prediction game: catalog setup,
points rules, results entry, leaderboards and statistics.
"""

import logging

import click
from flask.cli import with_appcontext
from flask_migrate import downgrade, migrate, upgrade
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from podium import create_app, db
from podium.errors import PodiumError
from podium.models import (
    Competitor,
    Event,
    PointsRule,
    Prediction,
    Season,
    Sport,
    Tier,
    User,
)
from podium.services import leaderboard_service, results_service, statistics_service
from podium.services.scheduler_service import scheduler_service
from podium.utils.cache_utils import (
    get_cache_stats,
    invalidate_cache_pattern,
    invalidate_leaderboards,
)
from podium.utils.timezone_utils import get_utc_time

app = create_app()

# Jobs submitted from the command line run inline
scheduler_service.stop()


@click.group()
def cli():
    """Podium Management CLI"""
    pass


def _fail(message, error=None):
    db.session.rollback()
    click.echo(f"❌ {message}")
    if error is not None:
        logging.error(f"{message}: {error}")


# Catalog Commands
@cli.group()
def catalog():
    """Sports, tiers, seasons, competitors and events"""
    pass


@catalog.command("add-sport")
@click.argument("name")
@click.option("--display-name", help="Human readable name")
@with_appcontext
def add_sport(name, display_name):
    """Create a sport"""
    try:
        sport = Sport(name=name, display_name=display_name or name)
        db.session.add(sport)
        db.session.commit()
        invalidate_cache_pattern("*catalog*")
        click.echo(f"✅ Created sport {sport.name} (id {sport.id})")
    except IntegrityError as e:
        _fail(f"Sport {name} already exists!", e)


@catalog.command("add-tier")
@click.argument("sport_id", type=int)
@click.argument("name")
@click.option("--short-name", help="Abbreviation, e.g. F1")
@click.option("--order", "display_order", type=int, default=0, help="Display order")
@with_appcontext
def add_tier(sport_id, name, short_name, display_order):
    """Create a tier (championship) within a sport"""
    if db.session.get(Sport, sport_id) is None:
        click.echo(f"❌ Sport {sport_id} not found!")
        return

    try:
        tier = Tier(
            sport_id=sport_id,
            name=name,
            short_name=short_name,
            display_order=display_order,
        )
        db.session.add(tier)
        db.session.commit()
        invalidate_cache_pattern("*catalog*")
        click.echo(f"✅ Created tier {tier.name} (id {tier.id})")
    except IntegrityError as e:
        _fail(f"Tier {name} already exists for this sport!", e)


@catalog.command("add-season")
@click.argument("tier_id", type=int)
@click.argument("year", type=int)
@click.option("--name", help="Season name")
@click.option(
    "--start-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Season start date (YYYY-MM-DD)",
)
@click.option(
    "--end-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Season end date (YYYY-MM-DD)",
)
@click.option("--best-results", type=int, help="Count only the best N event scores")
@click.option("--activate", is_flag=True, help="Activate this season")
@with_appcontext
def add_season(tier_id, year, name, start_date, end_date, best_results, activate):
    """Create a season of a tier"""
    tier = db.session.get(Tier, tier_id)
    if tier is None:
        click.echo(f"❌ Tier {tier_id} not found!")
        return

    try:
        season = Season.create_season(
            tier,
            year,
            name=name,
            start_date=start_date.date() if start_date else None,
            end_date=end_date.date() if end_date else None,
        )
        season.best_results_number = best_results
        db.session.flush()

        if activate:
            season.activate()

        db.session.commit()
        invalidate_cache_pattern("*catalog*")
        click.echo(f"✅ Created season {season.name} (id {season.id})")

        if activate:
            click.echo(f"✅ Activated season {season.name}")

    except IntegrityError as e:
        _fail(f"Season {year} already exists for {tier.name}!", e)
    except SQLAlchemyError as e:
        _fail("Database error creating season", e)


@catalog.command("activate")
@click.argument("season_id", type=int)
@with_appcontext
def activate_season(season_id):
    """Make a season its tier's active season"""
    season = db.session.get(Season, season_id)
    if season is None:
        click.echo(f"❌ Season {season_id} not found!")
        return

    season.activate()
    db.session.commit()
    invalidate_cache_pattern("*catalog*")
    click.echo(f"✅ Activated season {season.name}")


@catalog.command("add-competitor")
@click.argument("name")
@click.option("--sport-id", type=int, help="Sport the competitor races in")
@click.option("--short-name", help="Three letter code, e.g. VER")
@click.option("--number", help="Race number")
@click.option("--team", help="Team name")
@click.option("--country", help="Country")
@click.option(
    "--season-id", "season_ids", type=int, multiple=True, help="Enter into season"
)
@with_appcontext
def add_competitor(name, sport_id, short_name, number, team, country, season_ids):
    """Create a competitor and optionally enter them into seasons"""
    try:
        competitor = Competitor(
            sport_id=sport_id,
            name=name,
            short_name=short_name,
            number=number,
            team=team,
            country=country,
        )
        db.session.add(competitor)
        db.session.flush()

        for season_id in season_ids:
            season = db.session.get(Season, season_id)
            if season is None:
                _fail(f"Season {season_id} not found!")
                return
            season.add_competitor(competitor)

        db.session.commit()
        invalidate_cache_pattern("*catalog*")
        click.echo(f"✅ Created competitor {competitor.name} (id {competitor.id})")

    except SQLAlchemyError as e:
        _fail("Database error creating competitor", e)


@catalog.command("enter")
@click.argument("season_id", type=int)
@click.argument("competitor_ids", type=int, nargs=-1, required=True)
@with_appcontext
def enter_competitors(season_id, competitor_ids):
    """Add competitors to a season's roster"""
    season = db.session.get(Season, season_id)
    if season is None:
        click.echo(f"❌ Season {season_id} not found!")
        return

    added = 0
    for competitor_id in competitor_ids:
        competitor = db.session.get(Competitor, competitor_id)
        if competitor is None:
            click.echo(f"⚠️  Competitor {competitor_id} not found, skipped")
            continue
        if season.add_competitor(competitor) is not None:
            added += 1

    db.session.commit()
    invalidate_cache_pattern("*catalog*")
    click.echo(f"✅ Entered {added} competitors into {season.name}")


@catalog.command("add-event")
@click.argument("season_id", type=int)
@click.argument("name")
@click.option("--round", "round_number", type=int, required=True, help="Round")
@click.option(
    "--date",
    "event_date",
    type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]),
    required=True,
    help="Event start in UTC (YYYY-MM-DD HH:MM)",
)
@click.option(
    "--cutoff",
    type=click.DateTime(formats=["%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"]),
    help="Prediction cutoff in UTC, defaults to the event start",
)
@click.option("--location", help="Venue")
@with_appcontext
def add_event(season_id, name, round_number, event_date, cutoff, location):
    """Create an event in a season"""
    if db.session.get(Season, season_id) is None:
        click.echo(f"❌ Season {season_id} not found!")
        return

    try:
        event = Event(
            season_id=season_id,
            name=name,
            round=round_number,
            location=location,
            event_date=event_date,
            prediction_cutoff=cutoff or event_date,
        )
        db.session.add(event)
        db.session.commit()
        click.echo(f"✅ Created event {event.name} (id {event.id})")
    except SQLAlchemyError as e:
        _fail("Database error creating event", e)


@catalog.command("list")
@with_appcontext
def list_catalog():
    """Show the sport / tier / season tree"""
    sports = Sport.query.order_by(Sport.name).all()
    if not sports:
        click.echo("No sports found.")
        return

    for sport in sports:
        click.echo(f"🏁 {sport.display_name} (id {sport.id})")
        for tier in sport.tiers.order_by(Tier.display_order):
            click.echo(f"   {tier.name} (id {tier.id})")
            for season in tier.seasons.order_by(Season.year):
                status = "🟢 Active" if season.is_active else "⚪ Inactive"
                events = season.events.count()
                click.echo(
                    f"      {season.year} (id {season.id}) {status} - {events} events"
                )


# Points Rule Commands
@cli.group()
def rules():
    """Points rules per tier and season"""
    pass


@rules.command("set")
@click.argument("season_id", type=int)
@click.argument("exact", type=int)
@click.argument("one_off", type=int)
@click.argument("two_off", type=int)
@click.argument("in_podium", type=int)
@with_appcontext
def set_rule(season_id, exact, one_off, two_off, in_podium):
    """Create the points rule for a season"""
    season = db.session.get(Season, season_id)
    if season is None:
        click.echo(f"❌ Season {season_id} not found!")
        return

    try:
        rule = PointsRule.create_rule(season, exact, one_off, two_off, in_podium)
        db.session.commit()
        click.echo(f"✅ Created points rule {rule.to_dict()}")
        click.echo("   Existing scores are not changed; run 'results rescore' if needed")
    except PodiumError as e:
        _fail(e.message)


@rules.command("show")
@click.argument("season_id", type=int)
@with_appcontext
def show_rule(season_id):
    """Show the points rule for a season"""
    season = db.session.get(Season, season_id)
    if season is None:
        click.echo(f"❌ Season {season_id} not found!")
        return

    rule = PointsRule.lookup(season.tier_id, season.id)
    if rule is None:
        click.echo(f"No points rule configured for {season.name}")
        return

    click.echo(f"Points rule for {season.name}:")
    click.echo(f"  Exact position: {rule.exact_position_points}")
    click.echo(f"  One off:        {rule.one_off_points}")
    click.echo(f"  Two off:        {rule.two_off_points}")
    click.echo(f"  In podium:      {rule.in_podium_points}")


# Results Commands
@cli.group()
def results():
    """Event results and scoring"""
    pass


@results.command("record")
@click.argument("event_id", type=int)
@click.argument("first", type=int)
@click.argument("second", type=int)
@click.argument("third", type=int)
@with_appcontext
def record(event_id, first, second, third):
    """Record an event's podium and score its predictions"""
    try:
        summary = results_service.record_results(
            db.session.get(Event, event_id), [first, second, third]
        )
        click.echo(
            f"✅ Scored {summary.predictions_scored} predictions "
            f"({summary.total_points} points awarded)"
        )
    except PodiumError as e:
        _fail(e.message)
    except SQLAlchemyError as e:
        _fail("Database error recording results", e)


@results.command("rescore")
@click.argument("event_id", type=int)
@with_appcontext
def rescore(event_id):
    """Re-score an event with the current points rule"""
    try:
        summary = results_service.rescore_event(event_id)
        click.echo(f"✅ Re-scored {summary.predictions_scored} predictions")
    except PodiumError as e:
        _fail(e.message)


@results.command("pending")
@click.option("--season-id", type=int, help="Limit to one season")
@with_appcontext
def pending(season_id):
    """List completed events that still have unscored predictions"""
    unscored = results_service.get_unscored_predictions(season_id)
    if not unscored:
        click.echo("✅ No unscored predictions")
        return

    by_event = {}
    for prediction in unscored:
        by_event.setdefault(prediction.event, []).append(prediction)

    for event, predictions in by_event.items():
        click.echo(f"⚠️  {event.name} (id {event.id}): {len(predictions)} unscored")


# Leaderboard Commands
@cli.command()
@click.option("--season-id", type=int, help="Season standings")
@click.option("--tier-id", type=int, help="Standings across a tier's seasons")
@click.option("--all-participants", is_flag=True, help="Include users with no points")
@click.option("--limit", type=int, default=20, help="Rows to show")
@with_appcontext
def leaderboard(season_id, tier_id, all_participants, limit):
    """Print standings (global when no scope is given)"""
    try:
        if season_id:
            standings = leaderboard_service.season_leaderboard(
                season_id, all_participants
            )
        elif tier_id:
            standings = leaderboard_service.tier_leaderboard(tier_id, all_participants)
        else:
            standings = leaderboard_service.global_leaderboard(all_participants)
    except PodiumError as e:
        click.echo(f"❌ {e.message}")
        return

    if not standings:
        click.echo("No scored predictions yet.")
        return

    click.echo(f"{'Rank':>4}  {'User':<20} {'Points':>7} {'Picks':>6}")
    for entry in standings[:limit]:
        click.echo(
            f"{entry.rank:>4}  {entry.username:<20} "
            f"{entry.total_points:>7} {entry.predictions_count:>6}"
        )


# Statistics Commands
@cli.group()
def stats():
    """Per-user season statistics"""
    pass


@stats.command("recalculate")
@click.argument("season_id", type=int)
@with_appcontext
def recalculate(season_id):
    """Rebuild statistics for every user in a season"""
    try:
        job = statistics_service.start_recalculation(season_id)
    except PodiumError as e:
        click.echo(f"❌ {e.message}")
        return

    if job.status == job.FAILED:
        click.echo(f"❌ Job {job.id} failed: {job.error_message}")
    else:
        click.echo(
            f"✅ Job {job.id} {job.status}: {job.processed_users}/{job.total_users} users"
        )


@stats.command("job")
@click.argument("job_id")
@with_appcontext
def job(job_id):
    """Show a statistics job"""
    try:
        stats_job = statistics_service.get_job(job_id)
    except PodiumError as e:
        click.echo(f"❌ {e.message}")
        return

    for key, value in stats_job.to_dict().items():
        click.echo(f"  {key}: {value}")


# User Management Commands
@cli.group()
def user():
    """User management commands"""
    pass


@user.command()
@click.argument("username")
@click.argument("email")
@with_appcontext
def create_admin(username, email):
    """Create an admin user; they sign in with an emailed code"""
    try:
        if User.find_by_email_or_username(username) or User.find_by_email_or_username(
            email
        ):
            click.echo("❌ User with that username or email already exists!")
            return

        admin = User.create_user(username, email, is_admin=True)
        admin.is_verified = True
        db.session.commit()
        invalidate_leaderboards()
        click.echo(f"✅ Created admin user: {username}")

    except SQLAlchemyError as e:
        _fail("Database error creating admin user", e)


@user.command("promote")
@click.argument("identifier")
@with_appcontext
def promote(identifier):
    """Grant admin rights to an existing user"""
    target = User.find_by_email_or_username(identifier)
    if target is None:
        click.echo(f"❌ User {identifier} not found!")
        return

    target.is_admin = True
    db.session.commit()
    click.echo(f"✅ {target.username} is now an admin")


@user.command()
@with_appcontext
def list_users():
    """List all users"""
    users = User.query.order_by(User.created_at).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("Users:")
    for u in users:
        status = "🟢 Active" if u.is_active else "🔴 Inactive"
        admin = " (Admin)" if u.is_admin else ""
        click.echo(f"  {u.username} - {u.email} - {status}{admin}")


# Database Commands
@cli.group()
def db_cmd():
    """Database management commands"""
    pass


@db_cmd.command()
@with_appcontext
def init_db():
    """Initialize the database"""
    db.create_all()
    click.echo("✅ Database initialized")


@db_cmd.command()
@click.confirmation_option(prompt="Are you sure you want to reset the database?")
@with_appcontext
def reset():
    """Reset the database (WARNING: This will delete all data!)"""
    db.drop_all()
    db.create_all()
    invalidate_cache_pattern("*")
    click.echo("✅ Database reset")


@cli.group()
def db_migrate():
    """Database migration commands"""
    pass


@db_migrate.command()
@click.option("-m", "--message", required=True, help="Migration message")
@with_appcontext
def create_migration(message):
    """Create a new migration"""
    migrate(message=message)
    click.echo(f"✅ Created migration: {message}")


@db_migrate.command()
@click.option("--revision", default="head", help="Revision to upgrade to")
@with_appcontext
def apply_migrations(revision):
    """Apply migrations"""
    upgrade(revision=revision)
    click.echo(f"✅ Applied migrations to {revision}")


@db_migrate.command()
@click.option("--revision", required=True, help="Revision to downgrade to")
@with_appcontext
def rollback_migration(revision):
    """Rollback to a specific migration"""
    downgrade(revision=revision)
    click.echo(f"✅ Rolled back to {revision}")


@cli.command()
@with_appcontext
def status():
    """Show application status"""
    click.echo("📊 Podium Status")
    click.echo("=" * 40)

    click.echo(f"🏁 Sports: {Sport.query.count()}")
    click.echo(f"🏆 Active Seasons: {Season.query.filter_by(is_active=True).count()}")

    user_count = User.query.filter_by(is_active=True).count()
    click.echo(f"👥 Active Users: {user_count}")

    completed = Event.query.filter_by(is_completed=True).count()
    click.echo(f"🏎️  Events: {completed}/{Event.query.count()} completed")

    upcoming = Event.query.filter(
        Event.is_completed.is_(False), Event.event_date >= get_utc_time()
    ).count()
    click.echo(f"📅 Upcoming Events: {upcoming}")

    scored = Prediction.query.filter(Prediction.points_earned.isnot(None)).count()
    click.echo(f"🎯 Predictions: {scored}/{Prediction.query.count()} scored")

    cache_stats = get_cache_stats()
    click.echo(f"🗄️  Cache: {cache_stats['type']} ({cache_stats['timeout']}s)")

    enabled = app.config.get("SCHEDULER_ENABLED", True)
    click.echo(f"⏰ Background scheduler: {'enabled' if enabled else 'disabled'}")


if __name__ == "__main__":
    with app.app_context():
        cli()
