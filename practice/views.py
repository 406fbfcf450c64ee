"""
A practice server for testing OAuth client libraries against: a consent
page that grants or denies on the press of a button, and two protected
resources.
"""
from django.http import HttpResponse
from django.shortcuts import render
from django.views.decorators.http import require_POST

from provider import consent as oauth_consent
from provider.config import OAuthConfig
from provider.decorators import oauth_required

DEFAULT_IDENTITY = "Superman"


def home(request):
    config = OAuthConfig.from_settings()
    return render(
        request,
        "practice/home.html",
        {
            "authorize_url": request.build_absolute_uri(config.authorize_path),
            "access_token_url": request.build_absolute_uri(config.access_token_path),
            "secret_url": request.build_absolute_uri("/secret"),
            "make_url": request.build_absolute_uri("/make"),
        },
    )


def authorize(request, consent: oauth_consent.ConsentRequest):
    """
    Consent view: asks the user whether the client may have access.
    """
    return render(
        request,
        "practice/authorize.html",
        {"consent": consent, "default_identity": DEFAULT_IDENTITY},
    )


@require_POST
def grant(request):
    return oauth_consent.grant(
        request.POST.get("authorization"),
        request.POST.get("identity") or DEFAULT_IDENTITY,
    )


@require_POST
def deny(request):
    return oauth_consent.deny(request.POST.get("authorization"))


@oauth_required()
def secret(request):
    return HttpResponse("You're awesome!", content_type="text/plain")


@oauth_required(scope="sudo")
def make(request):
    return HttpResponse("Sandwich", content_type="text/plain")
