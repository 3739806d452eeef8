import random
from datetime import date, timedelta

from django.core.management.base import BaseCommand
from django.db.models import Q

from core.linking import link_registration
from core.matching_logic import score_students
from core.models import Account, Assignment, Cohort, MentorApplication, StudentApplication


class Command(BaseCommand):
    help = "Seed sample applications, linked accounts, a cohort and mentor/student assignments."

    def add_arguments(self, parser):
        parser.add_argument(
            "--count",
            type=int,
            default=10,
            help="Number of student and mentor applications to create (default: 10).",
        )

    def handle(self, *args, **options):
        count = options["count"]
        random.seed(42)

        test_domain = "aspirelink.local"
        Assignment.objects.filter(
            Q(mentor_user__email__endswith=f"@{test_domain}")
            | Q(student_user__email__endswith=f"@{test_domain}")
        ).delete()
        Cohort.objects.filter(name__startswith="Seed Cohort").delete()
        StudentApplication.objects.filter(email__endswith=f"@{test_domain}").delete()
        MentorApplication.objects.filter(email__endswith=f"@{test_domain}").delete()
        Account.objects.filter(email__endswith=f"@{test_domain}").delete()

        first_names = ["Amara", "Tobi", "Lina", "Marco", "Sade", "Jonas", "Yuki", "Noor"]
        last_names = ["Okafor", "Schmidt", "Haddad", "Rossi", "Adeyemi", "Berg", "Tanaka", "Rahman"]
        universities = ["University of Lagos", "TU Berlin", "American University of Beirut", "Politecnico di Milano"]
        programs = ["Computer Science", "Mechanical Engineering", "Economics", "Biomedical Sciences"]
        years = ["1st Year", "2nd Year", "3rd Year", "4th Year"]
        disciplines = ["Software Engineering", "Data Science", "Product Management", "Finance", "Research"]
        topics = ["Career Planning", "Interview Prep", "Networking", "Graduate School", "Leadership"]
        job_titles = ["Senior Engineer", "Data Scientist", "Product Manager", "Analyst"]
        companies = ["Northwind", "Contoso", "Globex", "Initech"]
        time_zones = ["Africa/Lagos", "Europe/Berlin", "Asia/Beirut", "Europe/Rome"]

        students = []
        mentors = []

        for i in range(count):
            fn = random.choice(first_names)
            ln = random.choice(last_names)
            email = f"student{i+1}@{test_domain}"
            StudentApplication.objects.create(
                email=email,
                full_name=f"{fn} {ln}",
                university_name=random.choice(universities),
                academic_program=random.choice(programs),
                year_of_study=random.choice(years),
                nominated_by="Prof. Example",
                professor_email=f"professor{i+1}@{test_domain}",
                career_interests="Exploring industry roles after graduation.",
                mentorship_goals="Build a plan for the next two years.",
                preferred_disciplines=random.sample(disciplines, k=random.randint(1, 3)),
                mentoring_topics=random.sample(topics, k=random.randint(1, 3)),
                agreed_to_commitment=True,
                consent_to_contact=True,
            )
            # Every other applicant has already signed in and been linked.
            if i % 2 == 0:
                link_registration(f"seed-student-{i+1}", email)
                students.append(Account.objects.get(pk=f"seed-student-{i+1}"))

        for i in range(count):
            fn = random.choice(first_names)
            ln = random.choice(last_names)
            email = f"mentor{i+1}@{test_domain}"
            MentorApplication.objects.create(
                email=email,
                full_name=f"{fn} {ln}",
                current_job_title=random.choice(job_titles),
                company=random.choice(companies),
                years_experience=random.randint(3, 20),
                education="MSc",
                skills=random.sample(disciplines, k=2),
                location="Remote",
                time_zone=random.choice(time_zones),
                profile_summary="Happy to share what I learned the hard way.",
                motivation="Giving back to students starting out.",
                availability=["Weekday evenings"],
                preferred_disciplines=random.sample(disciplines, k=random.randint(1, 3)),
                mentoring_topics=random.sample(topics, k=random.randint(1, 3)),
                agreed_to_commitment=True,
                consent_to_contact=True,
            )
            if i % 2 == 0:
                link_registration(f"seed-mentor-{i+1}", email)
                mentors.append(Account.objects.get(pk=f"seed-mentor-{i+1}"))

        cohort = Cohort.objects.create(
            name="Seed Cohort",
            description="Sample cohort created by seed_data.",
            start_date=date.today(),
            end_date=date.today() + timedelta(days=120),
        )

        assigned = set()
        for mentor in mentors:
            for scored in score_students(mentor, students):
                if scored.student.pk not in assigned:
                    Assignment.objects.create(
                        cohort=cohort,
                        mentor_user=mentor,
                        student_user=scored.student,
                    )
                    assigned.add(scored.student.pk)
                    break

        self.stdout.write(
            self.style.SUCCESS(
                f"Seed data created successfully: {len(students)} students, "
                f"{len(mentors)} mentors, {len(assigned)} assignments."
            )
        )
