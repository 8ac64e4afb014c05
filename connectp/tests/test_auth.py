import pytest
from connectp.auth import create_access_token
from connectp.crud import normalize_username


@pytest.mark.asyncio
async def test_signup_creates_minimal_profile(client, chat):
    r = await client.post('/api/auth/signup', json={
        'email': 'Ann@Example.com',
        'password': 'secret1',
        'full_name': 'Ann Lee',
    })
    assert r.status_code == 201, r.text
    body = r.json()
    assert body['success'] is True
    user = body['user']
    assert user['email'] == 'ann@example.com'
    assert user['full_name'] == 'Ann Lee'
    assert user['is_onboarded'] is False
    assert user['username'] is None
    assert user['profile_pic'].startswith('https://avatar.iran.liara.run/public/')
    assert 'hashed_password' not in user
    assert 'jwt=' in r.headers['set-cookie']
    assert chat.upserts == [{'id': str(user['id']), 'name': 'Ann Lee', 'image': user['profile_pic']}]

    login = await client.post('/api/auth/login', json={'email': 'ann@example.com', 'password': 'secret1'})
    assert login.status_code == 200, login.text
    assert login.json()['user']['id'] == user['id']


@pytest.mark.asyncio
async def test_signup_rejects_duplicate_email(client):
    payload = {'email': 'bob@example.com', 'password': 'secret1', 'full_name': 'Bob'}
    first = await client.post('/api/auth/signup', json=payload)
    assert first.status_code == 201
    second = await client.post('/api/auth/signup', json=payload)
    assert second.status_code == 409
    assert second.json()['detail'] == 'Email already exists, please use a different one'


@pytest.mark.asyncio
@pytest.mark.parametrize('payload, message', [
    ({'email': 'c@example.com', 'password': '12345', 'full_name': 'C'}, 'Password must be at least 6 characters'),
    ({'email': 'not-an-email', 'password': 'secret1', 'full_name': 'C'}, 'Invalid email format'),
    ({'email': 'c@example.com', 'password': 'secret1', 'full_name': '   '}, 'All fields are required for signup'),
    ({'email': 'c@example.com', 'password': 'secret1'}, 'All fields are required for signup'),
    ({'email': '   ', 'password': 'secret1', 'full_name': 'C'}, 'All fields are required for signup'),
    ({'email': 'c@nodot', 'password': 'secret1', 'full_name': 'C'}, 'Invalid email format'),
])
async def test_signup_validation(client, payload, message):
    r = await client.post('/api/auth/signup', json=payload)
    assert r.status_code == 400, r.text
    assert r.json()['detail'] == message
    assert r.json()['errors']


@pytest.mark.asyncio
async def test_login_validation_and_bad_credentials(client, make_user):
    await make_user('Dana', onboard=False)

    short = await client.post('/api/auth/login', json={'email': 'dana@example.com', 'password': 'abc'})
    assert short.status_code == 400
    assert short.json()['detail'] == 'Password must be at least 6 characters'

    malformed = await client.post('/api/auth/login', json={'email': 'dana', 'password': 'secret1'})
    assert malformed.status_code == 400
    assert malformed.json()['detail'] == 'Invalid email format'

    wrong = await client.post('/api/auth/login', json={'email': 'dana@example.com', 'password': 'wrong-pass'})
    assert wrong.status_code == 401
    assert wrong.json()['detail'] == 'Invalid email or password'

    unknown = await client.post('/api/auth/login', json={'email': 'nobody@example.com', 'password': 'secret1'})
    assert unknown.status_code == 401


@pytest.mark.asyncio
async def test_signup_survives_chat_provider_failure(client, chat):
    chat.fail = True
    r = await client.post('/api/auth/signup', json={
        'email': 'eve@example.com', 'password': 'secret1', 'full_name': 'Eve',
    })
    assert r.status_code == 201, r.text
    assert chat.upserts == []
    login = await client.post('/api/auth/login', json={'email': 'eve@example.com', 'password': 'secret1'})
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_auth_gate(client, make_user):
    ann = await make_user('Ann', onboard=False)
    client.cookies.clear()

    missing = await client.get('/api/auth/me')
    assert missing.status_code == 401
    assert missing.json()['detail'] == 'Unauthorized - No token provided'

    garbage = await client.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-jwt'})
    assert garbage.status_code == 401

    ghost = create_access_token({'id': 999999})
    gone = await client.get('/api/auth/me', headers={'Authorization': f'Bearer {ghost}'})
    assert gone.status_code == 401
    assert gone.json()['detail'] == 'Unauthorized - User not found'

    malformed = create_access_token({'id': 'abc'})
    bad_id = await client.get('/api/users/friends', headers={'Authorization': f'Bearer {malformed}'})
    assert bad_id.status_code == 400
    assert bad_id.json()['detail'] == 'Invalid user identifier.'

    ok = await client.get('/api/auth/me', headers=ann.headers)
    assert ok.status_code == 200
    assert ok.json()['user']['id'] == ann.id


@pytest.mark.asyncio
async def test_cookie_credential(client, make_user):
    ann = await make_user('Ann', onboard=False)
    token = ann.headers['Authorization'].split(' ', 1)[1]
    client.cookies.clear()
    r = await client.get('/api/auth/me', headers={'Cookie': f'jwt={token}'})
    assert r.status_code == 200
    assert r.json()['user']['email'] == 'ann@example.com'


@pytest.mark.asyncio
async def test_logout_clears_cookie(client):
    r = await client.post('/api/auth/logout')
    assert r.status_code == 200
    assert r.json() == {'success': True, 'message': 'Logout successful'}
    cookie = r.headers['set-cookie']
    assert cookie.startswith('jwt=')
    assert 'Max-Age=0' in cookie


def test_username_normalization_is_idempotent():
    assert normalize_username('Foo_1') == 'foo_1'
    assert normalize_username(normalize_username('  Foo_1 ')) == 'foo_1'


@pytest.mark.asyncio
async def test_onboarding_normalizes_username(client, make_user, chat):
    ann = await make_user('Ann', onboard=False)
    profile = {
        'username': 'Foo_1',
        'full_name': 'Ann Lee',
        'bio': 'Learning Spanish',
        'native_language': 'english',
        'location': 'Berlin',
    }
    r = await client.post('/api/auth/onboarding', json=profile, headers=ann.headers)
    assert r.status_code == 200, r.text
    user = r.json()['user']
    assert user['username'] == 'foo_1'
    assert user['is_onboarded'] is True
    assert user['full_name'] == 'Ann Lee'

    again = await client.post('/api/auth/onboarding', json={**profile, 'username': 'foo_1'}, headers=ann.headers)
    assert again.status_code == 200, again.text
    assert again.json()['user']['username'] == 'foo_1'
    assert chat.upserts[-1]['name'] == 'Ann Lee'


@pytest.mark.asyncio
async def test_onboarding_keeps_avatar_unless_given(client, make_user):
    ann = await make_user('Ann', onboard=False)
    avatar = ann.user['profile_pic']
    profile = {'username': 'ann', 'full_name': 'Ann', 'bio': 'b', 'native_language': 'en', 'location': 'x'}

    r = await client.post('/api/auth/onboarding', json=profile, headers=ann.headers)
    assert r.json()['user']['profile_pic'] == avatar

    r = await client.post('/api/auth/onboarding', json={**profile, 'profile_pic': 'https://cdn.test/a.png'}, headers=ann.headers)
    assert r.json()['user']['profile_pic'] == 'https://cdn.test/a.png'


@pytest.mark.asyncio
async def test_onboarding_username_taken(client, make_user):
    await make_user('Ann', username='polyglot')
    bob = await make_user('Bob', onboard=False)
    r = await client.post('/api/auth/onboarding', json={
        'username': 'PolyGlot', 'full_name': 'Bob', 'bio': 'b', 'native_language': 'de', 'location': 'x',
    }, headers=bob.headers)
    assert r.status_code == 409
    assert r.json()['detail'] == 'Username is already taken. Please choose another one.'


@pytest.mark.asyncio
@pytest.mark.parametrize('username, message', [
    (None, 'Username is required.'),
    ('ab', 'Username must be between 3 and 20 characters.'),
    ('a' * 21, 'Username must be between 3 and 20 characters.'),
    ('bad-name', 'Username can only contain letters (a-z), numbers (0-9), and underscores (_).'),
])
async def test_onboarding_rejects_bad_username(client, make_user, username, message):
    ann = await make_user('Ann', onboard=False)
    r = await client.post('/api/auth/onboarding', json={
        'username': username, 'full_name': 'Ann', 'bio': 'b', 'native_language': 'en', 'location': 'x',
    }, headers=ann.headers)
    assert r.status_code == 400
    assert r.json()['detail'] == message


@pytest.mark.asyncio
async def test_onboarding_lists_missing_fields(client, make_user):
    ann = await make_user('Ann', onboard=False)
    r = await client.post('/api/auth/onboarding', json={
        'username': 'ann_1', 'full_name': 'Ann', 'bio': '', 'native_language': 'en',
    }, headers=ann.headers)
    assert r.status_code == 400
    body = r.json()
    assert body['detail'] == 'Full name, bio, native language, and location are required.'
    assert body['missing_fields'] == ['bio', 'location']


@pytest.mark.asyncio
async def test_chat_token(client, make_user, chat):
    ann = await make_user('Ann', onboard=False)
    r = await client.get('/api/chat/token', headers=ann.headers)
    assert r.status_code == 200
    assert r.json() == {'token': f'chat-token-{ann.id}'}

    chat.fail = True
    down = await client.get('/api/chat/token', headers=ann.headers)
    assert down.status_code == 503
    assert down.json()['detail'] == 'Chat service unavailable'


@pytest.mark.asyncio
@pytest.mark.parametrize('email, stored', [
    ('ann@school.test', 'ann@school.test'),
    ('Bob@Corp.Local', 'bob@corp.local'),
])
async def test_signup_accepts_reserved_domains(client, email, stored):
    r = await client.post('/api/auth/signup', json={'email': email, 'password': 'secret1', 'full_name': 'Ann'})
    assert r.status_code == 201, r.text
    assert r.json()['user']['email'] == stored

    login = await client.post('/api/auth/login', json={'email': email, 'password': 'secret1'})
    assert login.status_code == 200, login.text


@pytest.mark.asyncio
async def test_login_requires_all_fields(client):
    r = await client.post('/api/auth/login', json={'email': 'ann@example.com'})
    assert r.status_code == 400
    assert r.json()['detail'] == 'All fields are required'


@pytest.mark.asyncio
async def test_signup_rejects_overlong_name(client):
    r = await client.post('/api/auth/signup', json={
        'email': 'long@example.com', 'password': 'secret1', 'full_name': 'x' * 151,
    })
    assert r.status_code == 400
    assert r.json()['errors'][0]['field'] == 'full_name'


@pytest.mark.asyncio
@pytest.mark.parametrize('field, size', [
    ('full_name', 151),
    ('native_language', 65),
    ('location', 151),
    ('profile_pic', 513),
])
async def test_onboarding_rejects_overlong_fields(client, make_user, field, size):
    ann = await make_user('Ann', onboard=False)
    profile = {'username': 'ann', 'full_name': 'Ann', 'bio': 'b', 'native_language': 'en', 'location': 'x'}
    r = await client.post('/api/auth/onboarding', json={**profile, field: 'x' * size}, headers=ann.headers)
    assert r.status_code == 400, r.text
    assert r.json()['errors'][0]['field'] == field

    me = await client.get('/api/auth/me', headers=ann.headers)
    assert me.json()['user']['is_onboarded'] is False


@pytest.mark.asyncio
async def test_onboarding_reports_taken_username_first(client, make_user):
    await make_user('Ann', username='polyglot')
    bob = await make_user('Bob', onboard=False)
    r = await client.post('/api/auth/onboarding', json={
        'username': 'polyglot', 'full_name': 'Bob', 'bio': '',
    }, headers=bob.headers)
    assert r.status_code == 409
    assert r.json()['detail'] == 'Username is already taken. Please choose another one.'
