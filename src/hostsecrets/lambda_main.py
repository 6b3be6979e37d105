"""AWS Lambda handler using Mangum adapter."""

from mangum import Mangum

from hostsecrets.application import create_app
from hostsecrets.core.logging import intercept_standard_logging

# Intercept logs from botocore and other libraries
intercept_standard_logging()

app = create_app()

lambda_handler = Mangum(app)
