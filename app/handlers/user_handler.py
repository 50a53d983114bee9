from mangum import Mangum

from app.main import create_app

app = create_app(include_todos=False, title="User Lambda")

handler = Mangum(app)
