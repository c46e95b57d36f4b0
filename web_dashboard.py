from flask import Flask, jsonify, render_template_string, request, url_for

from config import Config
from jobs_filter import JobsFilter
from query import InvalidFilterError
from states import classify
from storage import JobStorage

app = Flask(__name__)

HTML = """
<!DOCTYPE html>
<html>
<head>
    <title>Jobs Dashboard</title>
    <link href="https://cdn.jsdelivr.net/npm/bootstrap@5.3.0/dist/css/bootstrap.min.css" rel="stylesheet">
    <style>
        body { background-color: #f8f9fa; font-family: 'Segoe UI', sans-serif; }
        h1 { margin-top: 20px; }
        .badge-scheduled { background-color: #6f42c1; }
        .badge-retried { background-color: #fd7e14; }
        .badge-queued { background-color: #ffc107; }
        .badge-running { background-color: #17a2b8; }
        .badge-succeeded { background-color: #28a745; }
        .badge-discarded { background-color: #dc3545; }
    </style>
</head>
<body>
<div class="container mt-4">
    <h1>Jobs Dashboard</h1>
    <form class="row g-2 mt-2" method="get">
        <div class="col-md-6"><input class="form-control" name="query" value="{{ params.get('query', '') }}" placeholder="Job ID, class or error"></div>
        {% for key in ('state', 'queue_name', 'job_class', 'cron_key', 'finished_since') %}
        {% if params.get(key) %}<input type="hidden" name="{{key}}" value="{{params[key]}}">{% endif %}
        {% endfor %}
        <div class="col-md-2"><button class="btn btn-outline-primary">Search</button></div>
    </form>

    <div class="row mt-4">
        {% for k,v in states.items() %}
        <div class="col-md-2 mb-3">
            <a class="text-decoration-none" href="{{ link(state=k) }}">
            <div class="card text-center shadow-sm {% if params.get('state') == k %}border-primary{% endif %}">
                <div class="card-body">
                    <h6 class="card-title text-uppercase">{{k}}</h6>
                    <h3>{{v}}</h3>
                </div>
            </div>
            </a>
        </div>
        {% endfor %}
    </div>

    <div class="row">
        <div class="col-md-6">
            <h5>Queues</h5>
            {% for name, count in queues.items() %}
            <a class="btn btn-outline-secondary btn-sm mb-1" href="{{ link(queue_name=name) }}">{{name}} <span class="badge bg-secondary">{{count}}</span></a>
            {% endfor %}
        </div>
        <div class="col-md-6">
            <h5>Job Classes</h5>
            {% for name, count in job_classes.items() %}
            <a class="btn btn-outline-secondary btn-sm mb-1" href="{{ link(job_class=name) }}">{{name}} <span class="badge bg-secondary">{{count}}</span></a>
            {% endfor %}
        </div>
    </div>

    <div class="mt-4">
        <h4>Jobs ({{ records|length }} of {{ filtered_count }}) <a href="/" class="btn btn-outline-secondary btn-sm">Clear filters</a></h4>
        <table class="table table-hover table-bordered shadow-sm bg-white">
            <thead class="table-light">
                <tr>
                    <th>ID</th>
                    <th>Job Class</th>
                    <th>Queue</th>
                    <th>State</th>
                    <th>Created At</th>
                    <th>Finished At</th>
                    <th>Error</th>
                </tr>
            </thead>
            <tbody>
                {% for j, state in rows %}
                <tr>
                    <td>{{j.id}}</td>
                    <td>{{j.job_class}}</td>
                    <td>{{j.queue_name}}</td>
                    <td><span class="badge badge-{{state}} text-light px-2 py-1">{{state}}</span></td>
                    <td>{{j.created_at}}</td>
                    <td>{{j.finished_at or ''}}</td>
                    <td style="max-width:300px; white-space:nowrap; overflow:hidden; text-overflow:ellipsis;">{{j.error or ''}}</td>
                </tr>
                {% endfor %}
            </tbody>
        </table>
        {% if next_offset is not none %}
        <a class="btn btn-outline-primary btn-sm" href="{{ link(offset=next_offset) }}">Older jobs</a>
        {% endif %}
    </div>
</div>
</body>
</html>
"""


def get_storage():
    storage = app.config.get("JOB_STORAGE")
    if storage is None:
        storage = app.config["JOB_STORAGE"] = JobStorage()
    return storage


def get_filter():
    params = request.args.to_dict()
    if not params.get("limit"):
        params["limit"] = Config().get("page_size")
    return JobsFilter(params, storage=get_storage())


@app.errorhandler(InvalidFilterError)
def invalid_filter(e):
    return jsonify({"error": str(e)}), 400


@app.route("/")
def home():
    jobs_filter = get_filter()
    records = jobs_filter.records()
    filtered_count = jobs_filter.filtered_count()
    params = jobs_filter.to_params()

    next_offset = jobs_filter.params.offset + len(records)
    if next_offset >= filtered_count:
        next_offset = None

    def link(**overrides):
        if "offset" not in overrides:
            overrides["offset"] = None
        return url_for("home", **jobs_filter.to_params(**overrides))

    return render_template_string(
        HTML,
        params=params,
        link=link,
        states=jobs_filter.states(),
        queues=jobs_filter.queues(),
        job_classes=jobs_filter.job_classes(),
        rows=[(r, classify(r, jobs_filter.now)) for r in records],
        filtered_count=filtered_count,
        next_offset=next_offset,
    )


@app.route("/api/jobs")
def api_jobs():
    jobs_filter = get_filter()
    records = jobs_filter.records()
    return jsonify({
        "jobs": [dict(r.to_dict(), state=classify(r, jobs_filter.now)) for r in records],
        "filtered_count": jobs_filter.filtered_count(),
        "states": jobs_filter.states(),
        "queues": jobs_filter.queues(),
        "job_classes": jobs_filter.job_classes(),
    })


if __name__ == "__main__":
    print("Starting Jobs Dashboard at http://localhost:5000")
    app.run(port=5000, debug=False)
