import nox


nox.options.default_venv_backend = "uv"

@nox.session(python="3.13")
def test(session):
    session.install(".[test]")
    session.run("uv", "pip", "list")
    session.run("pytest", "--durations=50", "tests", *session.posargs)


SCRIPTS = [
    "enrichnet.scripts.enrichment_map_run",
    "enrichnet.scripts.pcor_network_run",
    "enrichnet.scripts.write_config",
]

@nox.session(name="script-help")
def script_help(session):
    # Install in editable mode
    session.install("-e", ".")

    results = {}
    for module in session.posargs or SCRIPTS:
        session.log(f"▶ Running python -m {module} --help")
        try:
            session.run("python", "-m", module, "--help")
            results[module] = True
        except Exception:
            results[module] = False

    session.log("")
    session.log("▶ Script run summary:")
    for module, ok in results.items():
        mark = "✓" if ok else "✗"
        session.log(f"  {mark} {module}")

    if not all(results.values()):
        session.error("One or more scripts failed.")
