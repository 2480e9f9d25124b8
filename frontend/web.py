"""Serves the client page to browsers.

Each browser session gets its own ``AppController`` (and with it its own
API client and token). Forms post here, the matching controller flow runs
against the API, and the browser is sent back to the rendered page.
"""
import logging
import secrets

import uvicorn
from fastapi import Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from frontend import config
from frontend.api_client import ApiClient
from frontend.controllers import AppController, create_app
from frontend.views.layout import APP_TITLE
from frontend.views.modals import EnrollmentForm

logger = logging.getLogger(__name__)

SESSION_KEY = 'sid'


def render_page(controller: AppController) -> HTMLResponse:
    page = controller.page
    response = HTMLResponse(page.render())
    # Dialogs and the open modal are shown once.
    page.dialogs.clear()
    page.modals = ''
    return response


def redirect_home() -> RedirectResponse:
    return RedirectResponse('/', status_code=status.HTTP_303_SEE_OTHER)


def create_web_app(api_factory=ApiClient) -> FastAPI:
    app = FastAPI(title=APP_TITLE)
    app.add_middleware(SessionMiddleware, secret_key=config.SESSION_SECRET_KEY)
    controllers: dict[str, AppController] = {}

    def get_controller(request: Request) -> AppController:
        session_id = request.session.get(SESSION_KEY)
        if session_id not in controllers:
            session_id = secrets.token_urlsafe(16)
            request.session[SESSION_KEY] = session_id
            controllers[session_id] = create_app(api_factory())
            logger.info('New browser session')
        return controllers[session_id]

    @app.on_event('shutdown')
    def close_clients():
        for controller in controllers.values():
            controller.api.close()
        controllers.clear()

    @app.get('/', response_class=HTMLResponse)
    def home(controller: AppController = Depends(get_controller)):
        return render_page(controller)

    @app.post('/login')
    def login(
        email: str = Form(''),
        password: str = Form(''),
        controller: AppController = Depends(get_controller),
    ):
        controller.login(email, password)
        return redirect_home()

    @app.post('/logout')
    def logout(controller: AppController = Depends(get_controller)):
        controller.logout()
        return redirect_home()

    @app.get('/section/{section}')
    def section(section: str, controller: AppController = Depends(get_controller)):
        controller.show_section(section)
        return redirect_home()

    @app.get('/enroll', response_class=HTMLResponse)
    def enrollment_form(course_id: str | None = None, controller: AppController = Depends(get_controller)):
        if course_id:
            controller.select_course(course_id)
        else:
            controller.open_enrollment()
        return render_page(controller)

    @app.post('/enroll', response_class=HTMLResponse)
    def enroll(
        course_id: str = Form(''),
        full_name: str = Form(''),
        email: str = Form(''),
        phone: str = Form(''),
        country: str = Form(''),
        payment_method: str = Form(''),
        controller: AppController = Depends(get_controller),
    ):
        form = EnrollmentForm(course_id, full_name, email, phone, country, payment_method)
        if controller.enroll(form) is None:
            controller.select_course(course_id)
        return render_page(controller)

    @app.post('/assignments/{assignment_id}/submission')
    def upload_submission(
        assignment_id: int,
        file: UploadFile | None = File(None),
        comments: str | None = Form(None),
        controller: AppController = Depends(get_controller),
    ):
        upload = None
        if file is not None and file.filename:
            upload = (file.filename, file.file.read(), file.content_type or 'application/octet-stream')
        controller.upload_submission(assignment_id, upload, comments)
        return redirect_home()

    @app.post('/assignments')
    def create_assignment(
        course_id: str = Form(''),
        title: str = Form(''),
        description: str = Form(''),
        due_date: str = Form(''),
        max_grade: str = Form(''),
        controller: AppController = Depends(get_controller),
    ):
        controller.create_assignment({
            'course_id': course_id,
            'title': title,
            'description': description,
            'due_date': due_date,
            'max_grade': max_grade,
        })
        return redirect_home()

    @app.post('/submissions/{submission_id}/grade')
    def grade_submission(
        submission_id: int,
        grade: str = Form(''),
        feedback: str | None = Form(None),
        controller: AppController = Depends(get_controller),
    ):
        controller.grade_submission(submission_id, grade, feedback or None)
        return redirect_home()

    @app.post('/enrollments/{enrollment_id}/status')
    def update_enrollment(
        enrollment_id: int,
        new_status: str = Form('', alias='status'),
        notes: str | None = Form(None),
        controller: AppController = Depends(get_controller),
    ):
        controller.update_enrollment(enrollment_id, new_status, notes or None)
        return redirect_home()

    return app


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    uvicorn.run(create_web_app(), host=config.WEB_HOST, port=config.WEB_PORT)


if __name__ == '__main__':
    main()
