import unittest
from unittest.mock import patch

from firebase_admin import auth as firebase_auth

from todo_backend.auth import (
    FirebaseIdentityVerifier,
    StaticIdentityVerifier,
    VerifiedIdentity,
    bearer_token,
)
from todo_backend.errors import InvalidCredential, Unauthenticated, UpstreamError


class BearerTokenTests(unittest.TestCase):
    def test_extracts_token(self):
        self.assertEqual(bearer_token("Bearer abc.def"), "abc.def")
        self.assertEqual(bearer_token("bearer   abc"), "abc")

    def test_missing_or_malformed_header(self):
        for header in (None, "", "Bearer", "Bearer   ", "Basic abc", "abc"):
            with self.assertRaises(Unauthenticated):
                bearer_token(header)


class StaticIdentityVerifierTests(unittest.TestCase):
    def test_from_mapping(self):
        verifier = StaticIdentityVerifier.from_mapping(
            {"t1": "u1:u1@example.com", "t2": "u2"}
        )
        self.assertEqual(verifier.verify("t1"), VerifiedIdentity("u1", "u1@example.com"))
        self.assertEqual(verifier.verify("t2"), VerifiedIdentity("u2", None))
        with self.assertRaises(InvalidCredential):
            verifier.verify("t3")


class FirebaseIdentityVerifierTests(unittest.TestCase):
    def setUp(self):
        patcher = patch("todo_backend.auth.firebase_admin.get_app", return_value="app")
        patcher.start()
        self.addCleanup(patcher.stop)
        self.verifier = FirebaseIdentityVerifier("demo-project")

    @patch.object(firebase_auth, "verify_id_token")
    def test_valid_token(self, mock_verify):
        mock_verify.return_value = {"uid": "u1", "email": "u1@example.com"}
        identity = self.verifier.verify("good")
        self.assertEqual(identity, VerifiedIdentity("u1", "u1@example.com"))
        mock_verify.assert_called_once_with("good", app="app")

    @patch.object(firebase_auth, "verify_id_token")
    def test_token_without_email(self, mock_verify):
        mock_verify.return_value = {"uid": "u1"}
        self.assertIsNone(self.verifier.verify("good").email)

    @patch.object(firebase_auth, "verify_id_token")
    def test_invalid_and_expired_tokens(self, mock_verify):
        for error in (
            firebase_auth.InvalidIdTokenError("bad signature"),
            firebase_auth.ExpiredIdTokenError("expired", cause=None),
            ValueError("malformed"),
        ):
            mock_verify.side_effect = error
            with self.assertRaises(InvalidCredential):
                self.verifier.verify("bad")

    @patch.object(firebase_auth, "verify_id_token")
    def test_certificate_fetch_failure(self, mock_verify):
        mock_verify.side_effect = firebase_auth.CertificateFetchError(
            "unreachable", cause=None
        )
        with self.assertRaises(UpstreamError):
            self.verifier.verify("any")

    @patch("todo_backend.auth.firebase_admin.initialize_app", return_value="new-app")
    def test_initializes_app_once_with_project_id(self, mock_init):
        with patch(
            "todo_backend.auth.firebase_admin.get_app", side_effect=ValueError("none")
        ):
            verifier = FirebaseIdentityVerifier("demo-project")
        mock_init.assert_called_once_with(options={"projectId": "demo-project"})
        self.assertEqual(verifier._app, "new-app")


if __name__ == "__main__":
    unittest.main()
