# glazier/dashboard/routes.py

from flask import Blueprint, jsonify

from glazier.auth.utils import login_required
from glazier.estimates.utils import JOB_STATUSES, pipeline_summary

bp = Blueprint('dashboard', __name__)


@bp.route('')
@login_required
def summary(user):
    """
    Counts and pipeline value for the signed-in account.
    Returns { summary: {...}, jobStatuses: [quote, sold, …] }.
    """
    return jsonify(summary=pipeline_summary(user.id), jobStatuses=JOB_STATUSES)
