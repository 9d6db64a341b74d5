from django.contrib import admin

from .models import Category, Space, SpaceMembership, Transaction, UserSettings


class SpaceMembershipInline(admin.TabularInline):
    model = SpaceMembership
    extra = 0
    raw_id_fields = ("user",)


@admin.register(Space)
class SpaceAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "created_at")
    search_fields = ("name",)
    readonly_fields = ("invite_token",)
    inlines = [SpaceMembershipInline]


@admin.register(Category)
class CategoryAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "type", "color", "space")
    list_filter = ("type",)
    search_fields = ("name",)


@admin.register(Transaction)
class TransactionAdmin(admin.ModelAdmin):
    list_display = ("id", "date", "type", "amount", "category_name", "status", "space")
    list_filter = ("type", "status", "include_in_balance")
    date_hierarchy = "date"
    raw_id_fields = ("space", "added_by", "category")


admin.site.register(UserSettings)
