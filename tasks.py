from invoke import task
from pathlib import Path

# Get project root directory
PROJECT_ROOT = Path(__file__).parent.absolute()


def project_relative(path):
    """Convert a relative path to an absolute path relative to the project root."""
    return str(PROJECT_ROOT / path)


@task
def shell(c):
    """Start Django shell."""
    manage_py = project_relative("manage.py")
    c.run(f"python {manage_py} shell")


@task
def test(c, path=None):
    """Run the test suite. Optionally specify a specific test path."""
    manage_py = project_relative("manage.py")
    if path:
        c.run(f"python {manage_py} test {path}")
    else:
        c.run(f"python {manage_py} test golazo")


@task
def simulate(c, groups=3, teams_per_group=4, seed=None, two_legged=False):
    """Simulate a full edition: group stage, advancement and cups."""
    manage_py = project_relative("manage.py")
    args = f"--groups {groups} --teams-per-group {teams_per_group}"
    if seed is not None:
        args += f" --seed {seed}"
    if two_legged:
        args += " --two-legged"
    c.run(f"python {manage_py} simulate_edition {args}")
