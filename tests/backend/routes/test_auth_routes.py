import pytest
from fastapi import HTTPException
from sqlalchemy import select

from backend.auth import jwt_handler
from backend.models.enrollment import Enrollment
from backend.models.user import User
from backend.routes.auth_routes import LoginRequest, RegisterRequest, login, register


def _count(db, model) -> int:
    return len(db.fetch_all(select(model.id)))


def test_login_returns_user_with_role_and_token(db, make_user) -> None:
    user_id = make_user('alumno@dux.com', full_name='Estudiante Demo')

    response = login(LoginRequest(email=' ALUMNO@dux.com ', password='1234'), db=db)

    assert response['success'] is True
    assert response['message'] == 'Inicio de sesión exitoso'
    user = response['data']['user']
    assert user['id'] == user_id
    assert user['full_name'] == 'Estudiante Demo'
    assert user['role'] == {'id': 3, 'name': 'student'}

    claims = jwt_handler.decode_access_token(response['data']['token'])
    assert claims['sub'] == 'alumno@dux.com'
    assert claims['uid'] == user_id
    assert claims['role'] == 'student'


def test_login_records_last_login(db, make_user) -> None:
    make_user('profesor@dux.com', role='teacher')

    login(LoginRequest(email='profesor@dux.com', password='1234'), db=db)

    row = db.fetch_one(select(User.last_login).where(User.email == 'profesor@dux.com'))
    assert row['last_login'] is not None


@pytest.mark.parametrize(
    ('email', 'password'),
    [
        ('alumno@dux.com', 'wrong'),
        ('nobody@dux.com', '1234'),
    ],
)
def test_login_uses_same_message_for_unknown_email_and_wrong_password(db, make_user, email, password) -> None:
    make_user('alumno@dux.com')

    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email=email, password=password), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Credenciales incorrectas'


def test_login_rejects_inactive_account(db, make_user) -> None:
    make_user('inactivo@dux.com', is_active=False)

    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(email='inactivo@dux.com', password='1234'), db=db)

    assert exception_info.value.status_code == 403


@pytest.mark.parametrize(
    ('payload', 'detail'),
    [
        ({'email': 'alumno@dux.com'}, 'Email y contraseña son requeridos'),
        ({'email': '   ', 'password': '1234'}, 'Email y contraseña son requeridos'),
        ({'email': 'not-an-email', 'password': '1234'}, 'Formato de email inválido'),
    ],
)
def test_login_validates_input(db, payload, detail) -> None:
    with pytest.raises(HTTPException) as exception_info:
        login(LoginRequest(**payload), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == detail


def test_register_creates_student_with_pending_enrollment(db, make_user, make_course) -> None:
    teacher_id = make_user('carolina@dux.com', role='teacher')
    for index in range(4):
        make_course(f'Curso {index}', teacher_id)
    course_id = make_course('Dicción, voz y oratoria', teacher_id)
    assert course_id == 5

    response = register(
        RegisterRequest(
            full_name='Ana Ruiz',
            email='ana@example.com',
            password='1234',
            course_id=5,
            phone='3001234567',
            country='Colombia',
            payment_method='nequi',
        ),
        db=db,
    )

    assert response['success'] is True
    assert response['data']['user']['role'] == {'id': 3, 'name': 'student'}
    assert response['data']['enrollment']['status'] == 'pending'
    assert response['data']['enrollment']['course'] == 'Dicción, voz y oratoria'

    enrollment = db.fetch_one(
        select(Enrollment.status, Enrollment.payment_method, Enrollment.course_id)
        .where(Enrollment.id == response['data']['enrollment']['id'])
    )
    assert enrollment == {'status': 'pending', 'payment_method': 'nequi', 'course_id': 5}

    # The new account can sign in with the password it registered with.
    login_response = login(LoginRequest(email='ana@example.com', password='1234'), db=db)
    assert login_response['data']['user']['full_name'] == 'Ana Ruiz'


def test_register_duplicate_email_conflicts_without_writing(db, make_user, make_course) -> None:
    make_user('ana@example.com')
    course_id = make_course('Redacción')
    users_before = _count(db, User)

    with pytest.raises(HTTPException) as exception_info:
        register(
            RegisterRequest(full_name='Ana Ruiz', email='ANA@example.com', password='1234', course_id=course_id),
            db=db,
        )

    assert exception_info.value.status_code == 409
    assert _count(db, User) == users_before
    assert _count(db, Enrollment) == 0


def test_register_rejects_inactive_course(db, make_course) -> None:
    course_id = make_course('Cerrado', is_active=False)

    with pytest.raises(HTTPException) as exception_info:
        register(
            RegisterRequest(full_name='Ana Ruiz', email='ana@example.com', password='1234', course_id=course_id),
            db=db,
        )

    assert exception_info.value.status_code == 404
    assert _count(db, User) == 0


@pytest.mark.parametrize(
    ('overrides', 'detail'),
    [
        ({'course_id': None}, 'Nombre, email, contraseña y curso son requeridos'),
        ({'email': 'ana@'}, 'Formato de email inválido'),
        ({'password': '12'}, 'La contraseña debe tener al menos 4 caracteres'),
        ({'full_name': 'Al'}, 'El nombre debe tener al menos 3 caracteres'),
    ],
)
def test_register_validates_input(db, overrides, detail) -> None:
    payload = {'full_name': 'Ana Ruiz', 'email': 'ana@example.com', 'password': '1234', 'course_id': 1}
    payload.update(overrides)

    with pytest.raises(HTTPException) as exception_info:
        register(RegisterRequest(**payload), db=db)

    assert exception_info.value.status_code == 400
    assert exception_info.value.detail == detail


def test_me_requires_a_valid_token(client) -> None:
    response = client.get('/api/auth/me')

    assert response.status_code == 401
    assert response.json() == {'success': False, 'error': 'Token requerido'}

    response = client.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-token'})

    assert response.status_code == 401
    assert response.json()['error'] == 'Token inválido'


def test_me_returns_user_for_login_token(client, make_user) -> None:
    make_user('admin@dux.com', role='admin', full_name='Administrador')
    token = client.post('/api/auth/login', json={'email': 'admin@dux.com', 'password': '1234'}).json()['data']['token']

    response = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})

    assert response.status_code == 200
    assert response.json()['data']['role'] == {'id': 1, 'name': 'admin'}
    assert response.json()['data']['full_name'] == 'Administrador'


def test_register_stores_names_as_typed(db, make_course) -> None:
    course_id = make_course('Redacción')

    response = register(
        RegisterRequest(full_name="  Ana O'Brien & Co ", email='ana@example.com', password='1234', course_id=course_id),
        db=db,
    )

    assert response['data']['user']['full_name'] == "Ana O'Brien & Co"
    stored = db.fetch_one(select(User.full_name).where(User.id == response['data']['user']['id']))
    assert stored == {'full_name': "Ana O'Brien & Co"}
