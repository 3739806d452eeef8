from django.contrib import admin, messages

from .models import (
    Account,
    Application,
    Assignment,
    Cohort,
    ContactMessage,
    MentorApplication,
    MentoringSession,
    StudentApplication,
)


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ('id', 'email', 'full_name', 'role', 'is_active', 'created_at')
    list_filter = ('role', 'is_active')
    search_fields = ('id', 'email', 'full_name', 'display_name')
    readonly_fields = ('created_at', 'updated_at')
    actions = ('mark_as_admin_role', 'activate_accounts', 'deactivate_accounts')

    @admin.action(description='Set selected accounts role as admin')
    def mark_as_admin_role(self, request, queryset):
        updated_count = 0
        for account in queryset:
            account.role = Account.ROLE_ADMIN
            account.save(update_fields=['role', 'updated_at'])
            updated_count += 1
        self.message_user(
            request,
            f'{updated_count} account(s) updated with admin role.',
            level=messages.SUCCESS,
        )

    @admin.action(description='Activate selected accounts')
    def activate_accounts(self, request, queryset):
        updated_count = queryset.update(is_active=True)
        self.message_user(request, f'{updated_count} account(s) activated.', level=messages.SUCCESS)

    @admin.action(description='Deactivate selected accounts')
    def deactivate_accounts(self, request, queryset):
        updated_count = queryset.update(is_active=False)
        self.message_user(request, f'{updated_count} account(s) deactivated.', level=messages.SUCCESS)


class ApplicationAdmin(admin.ModelAdmin):
    list_display = ('id', 'email', 'full_name', 'status', 'linked_account', 'created_at')
    list_filter = ('status',)
    search_fields = ('email', 'full_name')
    readonly_fields = ('linked_account', 'created_at', 'updated_at')

    def get_readonly_fields(self, request, obj=None):
        fields = super().get_readonly_fields(request, obj)
        if obj is not None and obj.status == Application.STATUS_LINKED:
            return fields + ('status',)
        return fields


@admin.register(StudentApplication)
class StudentApplicationAdmin(ApplicationAdmin):
    list_display = ApplicationAdmin.list_display + ('university_name', 'academic_program')


@admin.register(MentorApplication)
class MentorApplicationAdmin(ApplicationAdmin):
    list_display = ApplicationAdmin.list_display + ('current_job_title', 'company')


class AssignmentInline(admin.TabularInline):
    model = Assignment
    extra = 0
    raw_id_fields = ('mentor_user', 'student_user')


@admin.register(Cohort)
class CohortAdmin(admin.ModelAdmin):
    list_display = ('name', 'start_date', 'end_date', 'is_active', 'created_at')
    list_filter = ('is_active',)
    search_fields = ('name',)
    inlines = (AssignmentInline,)


@admin.register(Assignment)
class AssignmentAdmin(admin.ModelAdmin):
    list_display = ('id', 'cohort', 'mentor_user', 'student_user', 'is_active', 'assigned_at')
    list_filter = ('is_active', 'cohort')
    search_fields = ('mentor_user__email', 'student_user__email', 'cohort__name')
    raw_id_fields = ('mentor_user', 'student_user')


@admin.register(MentoringSession)
class MentoringSessionAdmin(admin.ModelAdmin):
    list_display = ('id', 'assignment', 'cohort', 'scheduled_date', 'scheduled_time', 'status')
    list_filter = ('status', 'cohort')
    search_fields = ('assignment__mentor_user__email', 'assignment__student_user__email')


@admin.register(ContactMessage)
class ContactMessageAdmin(admin.ModelAdmin):
    list_display = ('name', 'email', 'subject', 'created_at')
    search_fields = ('name', 'email', 'subject')
    readonly_fields = ('created_at',)
