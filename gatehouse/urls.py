from django.conf import settings as djsettings
from django.contrib import admin as djadmin
from django.urls import path

from practice import views as practice
from provider.views import authorize, token


def oauth_path(setting: str) -> str:
    return djsettings.OAUTH[setting].lstrip("/")


urlpatterns = [
    path("", practice.home),
    # OAuth endpoints
    path(oauth_path("AUTHORIZE_PATH"), authorize.AuthorizationView.as_view()),
    path(oauth_path("ACCESS_TOKEN_PATH"), token.TokenView.as_view()),
    # Practice consent UI and resources
    path("oauth/grant", practice.grant),
    path("oauth/deny", practice.deny),
    path("secret", practice.secret),
    path("make", practice.make),
    # Django admin
    path("djadmin/", djadmin.site.urls),
]
