# run.py
import logging

import click
from flask.cli import with_appcontext

from furrchum import bcrypt, create_app, db
from furrchum.models import Profile, Role

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
app = create_app()


@app.cli.command('init-db')
@with_appcontext
def init_db():
    db.create_all()
    print('Database initialized.')


@app.cli.command('create-admin')
@click.argument('email')
@click.argument('password')
@click.option('--full-name', default='Platform Admin')
@click.option('--superadmin', is_flag=True, help='Create a superadmin instead of an admin')
@with_appcontext
def create_admin(email, password, full_name, superadmin):
    """Admins cannot self-register; create them from the command line."""
    if Profile.query.filter_by(email=email).first():
        raise click.ClickException(f'{email} is already registered')
    profile = Profile(
        email=email,
        password=bcrypt.generate_password_hash(password).decode('utf-8'),
        full_name=full_name,
        user_type=Role.SUPERADMIN if superadmin else Role.ADMIN,
    )
    db.session.add(profile)
    db.session.commit()
    print(f'Created {profile.user_type.value} {email}')


if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
