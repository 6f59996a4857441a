from wtforms import IntegerField
from wtforms.validators import DataRequired, NumberRange

from podium.forms.auth import ApiForm


class WholeNumberField(IntegerField):
    """IntegerField that rejects JSON floats, booleans and nulls instead of truncating them"""

    def process_formdata(self, valuelist):
        if not valuelist:
            return
        value = valuelist[0]
        # bool is a subclass of int
        if isinstance(value, bool) or not isinstance(value, (int, str)):
            self.data = None
            raise ValueError(self.gettext("Not a valid integer value."))
        super().process_formdata(valuelist)


class PodiumForm(ApiForm):
    """First, second and third place competitor ids"""

    first_place_id = WholeNumberField("First place", validators=[DataRequired()])
    second_place_id = WholeNumberField("Second place", validators=[DataRequired()])
    third_place_id = WholeNumberField("Third place", validators=[DataRequired()])

    def competitor_ids(self):
        return [
            self.first_place_id.data,
            self.second_place_id.data,
            self.third_place_id.data,
        ]


class PredictionForm(PodiumForm):
    event_id = WholeNumberField("Event", validators=[DataRequired()])


class ResultsForm(PodiumForm):
    pass


class PointsRuleForm(ApiForm):
    # NumberRange also rejects a missing value; 0 is allowed
    exact_position_points = WholeNumberField(
        "Exact position", validators=[NumberRange(min=0)]
    )
    one_off_points = WholeNumberField("One off", validators=[NumberRange(min=0)])
    two_off_points = WholeNumberField("Two off", validators=[NumberRange(min=0)])
    in_podium_points = WholeNumberField("In podium", validators=[NumberRange(min=0)])
