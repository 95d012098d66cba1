"""Create the paper review tables in the configured database."""

from reviewapi.factory import create_web_app
from paperreview.services import database

app = create_web_app()
app.app_context().push()
database.create_all()
