import os

# Keep a developer's exported pipeline settings out of the tests
for _var in (
    "IMAGE_TAG",
    "DEPLOY_ENV",
    "DEPLOYMENT_TARGET",
    "AWS_REGION",
    "AWS_ACCOUNT_ID",
    "ECR_REPO_URI",
    "PIPELINE_LOG_LEVEL",
    "PIPELINE_PROJECT_ROOT",
):
    os.environ.pop(_var, None)

from tests.fixtures import *  # noqa: E402,F401,F403
