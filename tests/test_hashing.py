from energy_market.utils.hashing import hash_password, issue_token, verify_password


def test_hash_is_salted_and_verifiable():
    first = hash_password("s3cret!", 1000)
    second = hash_password("s3cret!", 1000)

    assert first != second
    assert first.startswith("pbkdf2:sha256:1000$")
    assert "s3cret!" not in first
    assert verify_password("s3cret!", first)
    assert verify_password("s3cret!", second)


def test_wrong_password_fails():
    encoded = hash_password("s3cret!", 1000)

    assert not verify_password("s3cret", encoded)
    assert not verify_password("", encoded)


def test_plaintext_or_unknown_hash_never_matches():
    assert not verify_password("s3cret!", "s3cret!")
    assert not verify_password("s3cret!", "md5$salt$abc")


def test_token_is_bound_to_user():
    token = issue_token("user-1", "key")
    user_id, nonce, signature = token.split(".")

    assert user_id == "user-1"
    assert nonce
    assert len(signature) == 64
    assert issue_token("user-1", "key") != token
