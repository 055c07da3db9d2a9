import boto3
from ..core.config import settings

def s3():
    """Create an S3 client using our configured region/endpoint/creds.

    boto3 clients are thread-safe, so one client can be shared by every
    worker of a batch; creating them is not, so do it once up front.
    """
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.aws_endpoint_url,
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
    )
