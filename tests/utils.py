import httpx

from lawrepo.core.security import create_access_token
from lawrepo.models.user import Role, User, UserRole
from lawrepo.models.video import Video
from lawrepo.services.mux_client import MuxClient


def make_user(db_session, email, name="Test User", role_names=(), password_hash=None):
    user = User(email=email, name=name, password_hash=password_hash)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    for role_name in role_names:
        role = db_session.query(Role).filter(Role.name == role_name).one()
        db_session.add(UserRole(user_id=user.id, role_id=role.id))
    db_session.commit()
    db_session.expire(user, ["roles"])
    return user


def auth_headers(user):
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


def make_video(db_session, **overrides):
    fields = dict(
        title="Contracts Lecture 1",
        description="Offer and acceptance",
        filename="contracts-1.mp4",
        file_path="https://test-bucket.s3.us-east-1.amazonaws.com/videos/1-abc.mp4",
        s3_key="videos/1-abc.mp4",
        is_processed=True,
        is_public=True,
        visibility="public",
        status="ready",
    )
    fields.update(overrides)
    video = Video(**fields)
    db_session.add(video)
    db_session.commit()
    db_session.refresh(video)
    return video


def make_mux_client(handler):
    return MuxClient("token-id", "token-secret", transport=httpx.MockTransport(handler))
