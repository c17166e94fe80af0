import pytest
from botocore.exceptions import ClientError

from src.employee_management.employee_management.core.exceptions import DependencyError
from src.employee_management.employee_management.notifications.email import SesEmailDispatcher


class StubSesClient:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def send_email(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return {"MessageId": "m-1"}


def test_ses_requires_region_and_sender():
    with pytest.raises(DependencyError):
        SesEmailDispatcher(region="", from_address="noreply@example.com", client=StubSesClient())


def test_ses_sends_html_message():
    client = StubSesClient()
    ses = SesEmailDispatcher(region="us-east-1", from_address="noreply@example.com", client=client)

    ses.send(to_address="ann@example.com", subject="Hi", html_body="<p>x</p>")

    (call,) = client.calls
    assert call["Source"] == "noreply@example.com"
    assert call["Destination"] == {"ToAddresses": ["ann@example.com"]}
    assert call["Message"]["Body"]["Html"]["Data"] == "<p>x</p>"


def test_ses_client_error_becomes_dependency_error():
    error = ClientError({"Error": {"Code": "MessageRejected", "Message": "nope"}}, "SendEmail")
    ses = SesEmailDispatcher(region="us-east-1", from_address="noreply@example.com", client=StubSesClient(error))

    with pytest.raises(DependencyError):
        ses.send(to_address="ann@example.com", subject="Hi", html_body="<p>x</p>")
