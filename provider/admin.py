from django.contrib import admin

from provider.models import AccessGrant, AccessToken, Client, Issuer


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = [
        "client_id",
        "display_name",
        "scope",
        "tokens_granted",
        "tokens_revoked",
        "created",
        "revoked",
    ]
    search_fields = ["client_id", "display_name", "link"]
    readonly_fields = ["tokens_granted", "tokens_revoked", "revoked"]
    actions = ["revoke"]

    @admin.action(description="Revoke clients and all their tokens")
    def revoke(self, request, queryset):
        for client in queryset:
            client.revoke()

    def delete_model(self, request, obj):
        Client.delete_client(obj.client_id)

    def delete_queryset(self, request, queryset):
        for client in queryset:
            Client.delete_client(client.client_id)


@admin.register(AccessToken)
class AccessTokenAdmin(admin.ModelAdmin):
    list_display = ["client_id", "identity", "scope", "created", "last_access", "revoked"]
    list_filter = ["revoked"]
    search_fields = ["identity", "client_id"]
    actions = ["revoke"]

    @admin.action(description="Revoke tokens")
    def revoke(self, request, queryset):
        for token in queryset:
            token.revoke()


@admin.register(AccessGrant)
class AccessGrantAdmin(admin.ModelAdmin):
    list_display = ["client_id", "identity", "scope", "created", "expires_at", "granted_at"]


@admin.register(Issuer)
class IssuerAdmin(admin.ModelAdmin):
    list_display = ["identifier", "notes", "created", "updated"]
