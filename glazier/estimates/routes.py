# glazier/estimates/routes.py

import io
import logging
from pathlib import Path

import click
from flask import Blueprint, jsonify, request, send_file
from flask.cli import AppGroup

from glazier.auth.utils import login_required
from glazier.errors import NotFound
from glazier.estimates.utils import (
    create_estimate,
    delete_estimate,
    get_estimate,
    list_estimates,
    update_estimate,
)
from glazier.exports.pdf import filename_for, render_estimate_pdf
from glazier.fields import json_body
from glazier.models import User

bp = Blueprint('estimates', __name__)


@bp.route('', methods=['GET'])
@login_required
def list_all(user):
    """
    Newest first.
    Optional exact-match filters: ?status=<status>&jobStatus=<job status>.
    """
    ests = list_estimates(
        user.id,
        status=request.args.get('status') or None,
        job_status=request.args.get('jobStatus') or None,
    )
    return jsonify(estimates=[e.to_dict() for e in ests])


@bp.route('', methods=['POST'])
@login_required
def create(user):
    data = json_body()
    est = create_estimate(user.id, data)
    return jsonify(estimate=est.to_dict())


@bp.route('/<int:estimate_id>', methods=['GET'])
@login_required
def view(estimate_id, user):
    est = get_estimate(user.id, estimate_id)
    return jsonify(estimate=est.to_dict(detail=True))


@bp.route('/<int:estimate_id>', methods=['PUT'])
@login_required
def update(estimate_id, user):
    data = json_body()
    est = update_estimate(user.id, estimate_id, data)
    return jsonify(estimate=est.to_dict())


@bp.route('/<int:estimate_id>', methods=['DELETE'])
@login_required
def delete(estimate_id, user):
    delete_estimate(user.id, estimate_id)
    return jsonify(success=True)


@bp.route('/<int:estimate_id>/pdf')
@login_required
def download_pdf(estimate_id, user):
    """Printable estimate as ``Estimate_<number>.pdf``."""
    data = get_estimate(user.id, estimate_id).to_dict(detail=True)
    try:
        pdf = render_estimate_pdf(data)
    except Exception:
        logging.exception('PDF generation failed for estimate id=%s', estimate_id)
        return jsonify(error='Failed to generate PDF'), 500
    return send_file(
        io.BytesIO(pdf),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename_for(data),
    )


estimates_cli = AppGroup('estimates', help='Estimate commands.')


@estimates_cli.command('export-pdf')
@click.argument('estimate_id', type=int)
@click.option('--email', required=True, help='Email of the owning account')
@click.option('--out', 'out_path', type=click.Path(dir_okay=False), help='Output file')
def export_pdf_command(estimate_id: int, email: str, out_path: str | None) -> None:
    """Write an estimate's PDF to disk."""
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None:
        raise click.ClickException('Estimate not found')
    try:
        data = get_estimate(user.id, estimate_id).to_dict(detail=True)
    except NotFound as e:
        raise click.ClickException(e.message)
    target = Path(out_path or filename_for(data))
    target.write_bytes(render_estimate_pdf(data))
    click.echo(f'wrote {target}')
