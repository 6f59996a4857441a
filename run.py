import os

from podium import create_app, db
from podium.models import (
    Competitor,
    Event,
    EventResult,
    PointsRule,
    Prediction,
    Season,
    Sport,
    Tier,
    User,
)

app = create_app()


@app.shell_context_processor
def make_shell_context():
    return {
        "db": db,
        "User": User,
        "Sport": Sport,
        "Tier": Tier,
        "Season": Season,
        "Competitor": Competitor,
        "Event": Event,
        "EventResult": EventResult,
        "PointsRule": PointsRule,
        "Prediction": Prediction,
    }


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=app.config.get("DEBUG", False))
