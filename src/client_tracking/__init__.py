"""Lambda function consuming client tracking events from SQS."""
