from mangum import Mangum
from main import app

# API Gateway entry point; the app has no startup work to run
handler = Mangum(app, lifespan="off")


def lambda_handler(event, context):
    return handler(event, context)
