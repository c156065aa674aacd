import json

from codeclip.detection import (
    ProjectDetector,
    ProjectRule,
    Weights,
    collect_entries,
    detect_project_types,
    get_rule,
)


def test_detection_is_idempotent(write_files):
    root = write_files({
        "package.json": json.dumps({"dependencies": {"react": "^18.0.0"}}),
        "src/App.tsx": "export default function App() {}",
        "pyproject.toml": "[project]\nname = 'x'\n",
        "main.py": "print(1)\n",
    })
    detector = ProjectDetector()
    assert detector.detect(root) == detector.detect(root)
    assert detector.score(root) == detector.score(root)


def test_makefile_alone_is_not_c(write_files):
    root = write_files({"Makefile": "all:\n\techo hi\n"})
    assert "C/C++" not in detect_project_types(root)


def test_makefile_with_source_is_c(write_files):
    root = write_files({"Makefile": "all:\n\tcc main.c\n", "main.c": "int main() {}\n"})
    assert detect_project_types(root) == ["C/C++"]


def test_package_json_without_react_is_node(write_files):
    root = write_files({"package.json": json.dumps({"dependencies": {"express": "4"}})})
    assert detect_project_types(root) == ["Node.js"]


def test_react_dependency_ranks_react_first(write_files):
    root = write_files({
        "package.json": json.dumps({"devDependencies": {"react": "^18.0.0"}}),
    })
    assert detect_project_types(root) == ["React", "Node.js"]


def test_unreadable_manifest_gets_fallback_weight(write_files):
    root = write_files({"package.json": "{ not json"})
    candidates = {c.name: c for c in ProjectDetector().score(root)}
    assert candidates["React"].raw_score == Weights.MANIFEST_UNREADABLE


def test_python_project(write_files):
    root = write_files({"pyproject.toml": "", "app/main.py": "", "main.py": ""})
    assert detect_project_types(root) == ["Python"]


def test_env_file_is_not_a_folder_indicator(write_files):
    root = write_files({".env": "SECRET=1\n"})
    assert detect_project_types(root) == []


def test_glob_file_indicator(write_files):
    root = write_files({"blink.ino": "void setup() {}\n"})
    assert detect_project_types(root)[0] == "Arduino"


def test_empty_directory(tmp_path):
    assert detect_project_types(tmp_path) == []


def test_missing_directory_detects_nothing(tmp_path):
    assert detect_project_types(tmp_path / "missing") == []


def test_close_confidence_falls_back_to_priority(write_files):
    root = write_files({"a.txt": "", "b.txt": ""})
    low = ProjectRule(name="Low", priority=1, file_patterns=("a.txt",))
    high = ProjectRule(name="High", priority=10, file_patterns=("a.txt", "b.txt"))
    assert ProjectDetector(rules=[low, high]).detect(root) == ["High", "Low"]


def test_clear_confidence_gap_wins_over_priority(write_files):
    root = write_files({"a.txt": ""})
    low = ProjectRule(name="Low", priority=1, file_patterns=("a.txt",))
    high = ProjectRule(
        name="High", priority=10, file_patterns=("a.txt", "x.txt", "y.txt", "z.txt")
    )
    assert ProjectDetector(rules=[high, low]).detect(root) == ["Low", "High"]


def test_at_most_three_results(write_files):
    root = write_files({"a.txt": ""})
    rules = [
        ProjectRule(name=f"R{i}", priority=i, file_patterns=("a.txt",))
        for i in range(5)
    ]
    assert ProjectDetector(rules=rules).detect(root) == ["R4", "R3", "R2"]


def test_content_scan_is_depth_limited(write_files):
    root = write_files({
        "src/a/b/deep.rs": "",
        "docs/x.rs": "",
    })
    files, dirs = collect_entries(root)
    assert "deep.rs" not in files
    assert "x.rs" not in files
    assert "src/" in dirs


def test_rule_lookup():
    assert get_rule("Go").priority == 7
    assert get_rule("Nope") is None
