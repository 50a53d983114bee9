from mangum import Mangum

from app.main import create_app

app = create_app(include_users=False, title="Todo Lambda")

handler = Mangum(app)
