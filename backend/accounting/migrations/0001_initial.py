from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=20, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("account_type", models.CharField(
                    choices=[
                        ("ASSET", "Asset"),
                        ("LIABILITY", "Liability"),
                        ("EQUITY", "Equity"),
                        ("REVENUE", "Revenue"),
                        ("EXPENSE", "Expense"),
                    ],
                    db_column="type",
                    max_length=20,
                )),
                ("normal_balance", models.CharField(
                    choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")],
                    editable=False,
                    max_length=10,
                )),
                ("description", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("deactivated_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("parent", models.ForeignKey(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="children",
                    to="accounting.account",
                )),
            ],
            options={
                "ordering": ["code"],
                "permissions": [
                    ("manage_chart", "Can create, edit and deactivate accounts"),
                    ("view_reports", "Can view general ledger and trial balance"),
                ],
                "indexes": [
                    models.Index(fields=["account_type"], name="acct_type_idx"),
                    models.Index(fields=["parent"], name="acct_parent_idx"),
                    models.Index(fields=["is_active"], name="acct_active_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Period",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period_key", models.CharField(max_length=7, unique=True)),
                ("status", models.CharField(
                    choices=[("OPEN", "Open"), ("CLOSED", "Closed")],
                    default="OPEN",
                    max_length=10,
                )),
                ("closed_at", models.DateTimeField(blank=True, null=True)),
                ("closed_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["period_key"],
                "permissions": [("close_period", "Can close accounting periods")],
            },
        ),
        migrations.CreateModel(
            name="LedgerSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                ("next_value", models.BigIntegerField(default=1)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_number", models.CharField(max_length=30, unique=True)),
                ("sequence", models.BigIntegerField(unique=True)),
                ("date", models.DateField()),
                ("period", models.CharField(max_length=7)),
                ("description", models.CharField(max_length=255)),
                ("reference", models.CharField(blank=True, default="", max_length=100)),
                ("kind", models.CharField(
                    choices=[("NORMAL", "Normal"), ("REVERSAL", "Reversal")],
                    default="NORMAL",
                    max_length=20,
                )),
                ("created_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("reverses", models.OneToOneField(
                    blank=True,
                    null=True,
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="reversal",
                    to="accounting.journalentry",
                )),
            ],
            options={
                "verbose_name_plural": "journal entries",
                "ordering": ["date", "sequence"],
                "permissions": [
                    ("post_entry", "Can post journal entries"),
                    ("reverse_entry", "Can post reversing entries"),
                ],
                "indexes": [
                    models.Index(fields=["date", "sequence"], name="je_date_seq_idx"),
                    models.Index(fields=["period"], name="je_period_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_no", models.PositiveIntegerField()),
                ("description", models.CharField(blank=True, default="", max_length=255)),
                ("debit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("credit", models.DecimalField(decimal_places=2, default=0, max_digits=18)),
                ("account", models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name="journal_lines",
                    to="accounting.account",
                )),
                ("entry", models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name="lines",
                    to="accounting.journalentry",
                )),
            ],
            options={
                "ordering": ["entry", "line_no"],
                "indexes": [
                    models.Index(fields=["account", "entry"], name="jl_account_entry_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("entry", "line_no"), name="uniq_journal_line_no"),
                    models.CheckConstraint(
                        condition=models.Q(("debit__gt", 0), ("credit__gt", 0), _negated=True),
                        name="chk_line_not_both_debit_credit",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("debit", 0), ("credit", 0), _negated=True),
                        name="chk_line_not_both_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("debit__gte", 0), ("credit__gte", 0)),
                        name="chk_line_non_negative",
                    ),
                ],
            },
        ),
    ]
