import django.contrib.auth.models
import django.contrib.auth.validators
import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Department',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, unique=True)),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Hospital',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('location', models.CharField(max_length=255)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('description', models.TextField(blank=True)),
                ('consultation_fee', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Insurance',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, unique=True)),
                ('coverage_percentage', models.DecimalField(
                    decimal_places=2, default=0, max_digits=5,
                    validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)],
                )),
                ('description', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='LabTestTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, unique=True)),
                ('description', models.TextField(blank=True)),
                ('price', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('category', models.CharField(blank=True, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='Medication',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255, unique=True)),
                ('description', models.TextField(blank=True)),
                ('category', models.CharField(blank=True, max_length=64)),
                ('unit_price', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('stock_quantity', models.PositiveIntegerField(default=0)),
                ('requires_prescription', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(
                    default=False,
                    help_text='Designates that this user has all permissions without explicitly assigning them.',
                    verbose_name='superuser status',
                )),
                ('username', models.CharField(
                    error_messages={'unique': 'A user with that username already exists.'},
                    help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.',
                    max_length=150, unique=True,
                    validators=[django.contrib.auth.validators.UnicodeUsernameValidator()],
                    verbose_name='username',
                )),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('is_staff', models.BooleanField(
                    default=False,
                    help_text='Designates whether the user can log into this admin site.',
                    verbose_name='staff status',
                )),
                ('is_active', models.BooleanField(
                    default=True,
                    help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.',
                    verbose_name='active',
                )),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('role', models.CharField(
                    choices=[
                        ('patient', 'Patient'),
                        ('doctor', 'Doctor'),
                        ('nurse', 'Nurse'),
                        ('lab_technician', 'Lab technician'),
                        ('pharmacist', 'Pharmacist'),
                        ('admin', 'Administrator'),
                    ],
                    db_index=True, default='patient', max_length=20,
                )),
                ('full_name', models.CharField(blank=True, max_length=255)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('national_id', models.CharField(blank=True, max_length=32)),
                ('groups', models.ManyToManyField(
                    blank=True,
                    help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.',
                    related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups',
                )),
                ('user_permissions', models.ManyToManyField(
                    blank=True, help_text='Specific permissions for this user.',
                    related_name='user_set', related_query_name='user', to='auth.permission',
                    verbose_name='user permissions',
                )),
                ('hospital', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='staff', to='clinic.hospital',
                )),
                ('insurance', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='members', to='clinic.insurance',
                )),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='AuditEvent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(max_length=64)),
                ('object_type', models.CharField(blank=True, max_length=64, null=True)),
                ('object_id', models.IntegerField(blank=True, null=True)),
                ('detail', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'indexes': [
                    models.Index(fields=['action', 'created_at'], name='audit_action_created_idx'),
                    models.Index(fields=['object_type', 'object_id', 'created_at'], name='audit_object_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Doctor',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('specialization', models.CharField(blank=True, max_length=255)),
                ('license_number', models.CharField(max_length=64, unique=True)),
                ('consultation_fee', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('signature_data', models.TextField(blank=True)),
                ('working_days', models.JSONField(blank=True, default=list, help_text='Weekdays 0=Mon..6=Sun')),
                ('working_hours', models.JSONField(blank=True, default=list, help_text='[{start, end}] in HH:MM')),
                ('slot_minutes', models.PositiveIntegerField(default=0, help_text='0 uses the project default')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('department', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='doctors', to='clinic.department',
                )),
                ('hospital', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='doctors', to='clinic.hospital',
                )),
                ('user', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name='doctor_profile',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('appointment_date', models.DateField()),
                ('appointment_time', models.TimeField()),
                ('status', models.CharField(
                    choices=[('pending', 'Pending'), ('approved', 'Approved'), ('rejected', 'Rejected'), ('completed', 'Completed')],
                    db_index=True, default='pending', max_length=16,
                )),
                ('reason', models.TextField(blank=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('weight', models.FloatField(blank=True, null=True)),
                ('temperature', models.FloatField(blank=True, null=True)),
                ('vitals_recorded_at', models.DateTimeField(blank=True, null=True)),
                ('consultation_fee', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('department', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='clinic.department',
                )),
                ('doctor', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='clinic.doctor',
                )),
                ('hospital', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='clinic.hospital',
                )),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='appointments',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('vitals_recorded_by', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='recorded_vitals', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'indexes': [
                    models.Index(fields=['doctor', 'appointment_date'], name='appt_doctor_date_idx'),
                    models.Index(fields=['hospital', 'status'], name='appt_hospital_status_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('status__in', ['pending', 'approved'])),
                        fields=('patient',),
                        name='one_active_appointment_per_patient',
                    ),
                    models.UniqueConstraint(
                        condition=models.Q(('status__in', ['pending', 'approved', 'completed'])),
                        fields=('doctor', 'appointment_date', 'appointment_time'),
                        name='one_booking_per_doctor_slot',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='Consultation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('diagnosis', models.TextField()),
                ('notes', models.TextField(blank=True)),
                ('requires_lab_test', models.BooleanField(default=False)),
                ('requires_prescription', models.BooleanField(default=False)),
                ('consultation_date', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name='consultation', to='clinic.appointment',
                )),
                ('doctor', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='consultations', to='clinic.doctor',
                )),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='consultations',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name='HospitalDepartment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('department', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='hospital_departments',
                    to='clinic.department',
                )),
                ('hospital', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='hospital_departments',
                    to='clinic.hospital',
                )),
            ],
            options={
                'unique_together': {('hospital', 'department')},
            },
        ),
        migrations.CreateModel(
            name='LabTestRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(
                    choices=[
                        ('awaiting_payment', 'Awaiting payment'),
                        ('pending', 'Pending'),
                        ('in_progress', 'In progress'),
                        ('completed', 'Completed'),
                    ],
                    db_index=True, default='awaiting_payment', max_length=20,
                )),
                ('total_price', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('consultation', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='lab_test_requests',
                    to='clinic.consultation',
                )),
                ('doctor', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='lab_test_requests', to='clinic.doctor',
                )),
                ('hospital', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='lab_test_requests', to='clinic.hospital',
                )),
                ('lab_test_template', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name='requests', to='clinic.labtesttemplate',
                )),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='lab_test_requests',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'constraints': [
                    models.UniqueConstraint(
                        fields=('consultation', 'lab_test_template'),
                        name='one_request_per_template_per_consultation',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='LabTestResult',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('result_status', models.CharField(
                    choices=[('positive', 'Positive'), ('negative', 'Negative'), ('inconclusive', 'Inconclusive')],
                    max_length=16,
                )),
                ('result_data', models.TextField()),
                ('notes', models.TextField(blank=True)),
                ('completed_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('lab_test_request', models.OneToOneField(
                    on_delete=django.db.models.deletion.CASCADE, related_name='result', to='clinic.labtestrequest',
                )),
                ('technician', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT, related_name='lab_results',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField()),
                ('notification_type', models.CharField(
                    choices=[
                        ('appointment', 'Appointment'),
                        ('consultation', 'Consultation'),
                        ('lab_test', 'Lab test'),
                        ('prescription', 'Prescription'),
                        ('payment', 'Payment'),
                        ('general', 'General'),
                    ],
                    default='general', max_length=16,
                )),
                ('reference_id', models.CharField(blank=True, max_length=64)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='notifications',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'indexes': [
                    models.Index(fields=['user', 'is_read', 'created_at'], name='notif_user_unread_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Payment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('payment_type', models.CharField(
                    choices=[('consultation', 'Consultation'), ('lab_test', 'Lab test'), ('medication', 'Medication')],
                    max_length=16,
                )),
                ('reference_id', models.PositiveBigIntegerField()),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('insurance_coverage', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('patient_pays', models.DecimalField(decimal_places=2, max_digits=12)),
                ('status', models.CharField(
                    choices=[('pending', 'Pending'), ('completed', 'Completed'), ('failed', 'Failed')],
                    default='completed', max_length=16,
                )),
                ('payment_method', models.CharField(
                    choices=[('mobile_money', 'Mobile money'), ('cash', 'Cash'), ('card', 'Card')],
                    default='mobile_money', max_length=16,
                )),
                ('phone_number', models.CharField(blank=True, max_length=32)),
                ('transaction_id', models.CharField(max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='payments',
                    to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'indexes': [
                    models.Index(fields=['payment_type', 'reference_id', 'status'], name='payment_reference_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Pharmacy',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=255)),
                ('location', models.CharField(max_length=255)),
                ('phone', models.CharField(blank=True, max_length=32)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('pharmacist', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='pharmacies', to=settings.AUTH_USER_MODEL,
                )),
            ],
            options={
                'verbose_name_plural': 'pharmacies',
            },
        ),
        migrations.CreateModel(
            name='Prescription',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('quantity', models.PositiveIntegerField(default=1)),
                ('dosage', models.CharField(blank=True, max_length=255)),
                ('instructions', models.TextField(blank=True)),
                ('notes', models.TextField(blank=True)),
                ('signature_data', models.TextField(blank=True)),
                ('status', models.CharField(
                    choices=[
                        ('pending', 'Pending'),
                        ('approved', 'Approved'),
                        ('paid', 'Paid'),
                        ('completed', 'Completed'),
                        ('rejected', 'Rejected'),
                    ],
                    db_index=True, default='pending', max_length=16,
                )),
                ('unit_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('total_price', models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ('pharmacist_approved_at', models.DateTimeField(blank=True, null=True)),
                ('rejection_reason', models.TextField(blank=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('consultation', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='prescriptions',
                    to='clinic.consultation',
                )),
                ('doctor', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='prescriptions', to='clinic.doctor',
                )),
                ('medication', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='prescriptions', to='clinic.medication',
                )),
                ('patient', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE, related_name='prescriptions',
                    to=settings.AUTH_USER_MODEL,
                )),
                ('pharmacist', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='reviewed_prescriptions', to=settings.AUTH_USER_MODEL,
                )),
                ('pharmacy', models.ForeignKey(
                    blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL,
                    related_name='prescriptions', to='clinic.pharmacy',
                )),
            ],
        ),
    ]
